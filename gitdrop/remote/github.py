"""
github.py — Object store sobre la API REST de Git Data de GitHub.

Endpoints usados:
    POST  /repos/{repo}/git/blobs            → create_blob
    GET   /repos/{repo}/git/blobs/{sha}      → get_blob
    GET   /repos/{repo}/git/commits/{sha}    → get_commit
    GET   /repos/{repo}/git/trees/{sha}      → get_tree
    POST  /repos/{repo}/git/trees            → create_tree
    POST  /repos/{repo}/git/commits          → create_commit
    GET   /repos/{repo}/git/ref/heads/{b}    → get_ref
    PATCH /repos/{repo}/git/refs/heads/{b}   → update_ref (force=false)
    GET   /repos/{repo}/contents/{path}      → list_directory

¿Y el compare-and-swap?
    GitHub no acepta un "valor esperado" en PATCH de refs. Lo más
    cercano es: leer el ref, comparar con el esperado, y mandar el
    PATCH con force=false. Como nuestro commit tiene como padre el
    valor esperado, si alguien avanzó el branch entre la lectura y
    el PATCH, GitHub lo rechaza por no ser fast-forward (422).
    Ambos casos terminan en RefConflict. Nunca se fuerza.

Uso:
    store = GitHubObjectStore("owner/repo", token)
    tip = store.get_ref("main")
"""

from __future__ import annotations

import base64
from urllib.parse import quote

import requests

from gitdrop.publishing.errors import RefConflict, RemoteError
from gitdrop.remote.store import DirectoryEntry, ObjectStore
from gitdrop.utils.logger import get_logger

logger = get_logger("gitdrop.remote.github")


class GitHubObjectStore(ObjectStore):
    """
    Cliente de Git Data para un repositorio de GitHub.

    Args:
        repository: Repo en formato "owner/name".
        token: Personal access token con scope "repo".
        api_base: URL base de la API.
        timeout: Timeout por llamada en segundos.
        session: Sesión de requests (inyectable para tests).
    """

    def __init__(
        self,
        repository: str,
        token: str,
        api_base: str = "https://api.github.com",
        timeout: float = 30.0,
        user_agent: str = "gitdrop/1.0",
        session: requests.Session | None = None,
    ):
        self._repository = repository
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "User-Agent": user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        })

    @property
    def repository(self) -> str:
        return self._repository

    # ============================================================
    # HTTP
    # ============================================================

    def _url(self, path: str) -> str:
        return f"{self._api_base}/repos/{self._repository}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Hace la llamada y convierte cualquier falla en RemoteError.

        Sin retry: las llamadas de construcción del commit fallan rápido.
        """
        url = self._url(path)
        logger.debug(f"{method} {url}")
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            raise RemoteError(f"Error de conexión con GitHub: {e}") from e

        if response.status_code >= 400:
            try:
                detalle = response.json().get("message", "")
            except ValueError:
                detalle = response.text[:200]
            raise RemoteError(
                f"GitHub respondió {response.status_code} en {method} {path}: {detalle}",
                status_code=response.status_code,
            )
        return response

    # ============================================================
    # Protocolo ObjectStore
    # ============================================================

    def create_blob(self, content: bytes) -> str:
        payload = {
            "content": base64.b64encode(content).decode("ascii"),
            "encoding": "base64",
        }
        return self._request("POST", "git/blobs", json=payload).json()["sha"]

    def get_blob(self, blob_id: str) -> bytes:
        data = self._request("GET", f"git/blobs/{blob_id}").json()
        if data.get("encoding") == "base64":
            return base64.b64decode(data["content"])
        return data["content"].encode("utf-8")

    def get_commit(self, commit_id: str) -> str:
        return self._request("GET", f"git/commits/{commit_id}").json()["tree"]["sha"]

    def get_tree(self, tree_id: str) -> dict[str, tuple[str, str]]:
        data = self._request("GET", f"git/trees/{tree_id}", params={"recursive": "1"}).json()
        if data.get("truncated"):
            logger.warning(f"Tree {tree_id[:7]} truncado por GitHub; el listado es parcial")
        return {
            item["path"]: (item["mode"], item["sha"])
            for item in data.get("tree", [])
            if item.get("type") == "blob"
        }

    def create_tree(self, base_tree_id: str, entries: list[dict]) -> str:
        payload = {"base_tree": base_tree_id, "tree": entries}
        return self._request("POST", "git/trees", json=payload).json()["sha"]

    def create_commit(self, message: str, tree_id: str, parent_ids: list[str]) -> str:
        payload = {"message": message, "tree": tree_id, "parents": list(parent_ids)}
        return self._request("POST", "git/commits", json=payload).json()["sha"]

    def get_ref(self, branch: str) -> str:
        data = self._request("GET", f"git/ref/heads/{quote(branch)}").json()
        return data["object"]["sha"]

    def update_ref(self, branch: str, new_id: str, expected_old_id: str) -> None:
        actual = self.get_ref(branch)
        if actual != expected_old_id:
            raise RefConflict(branch, expected_old_id, actual)

        try:
            self._request(
                "PATCH",
                f"git/refs/heads/{quote(branch)}",
                json={"sha": new_id, "force": False},
            )
        except RemoteError as e:
            # 409/422 "not a fast forward": otro escritor ganó la carrera
            if e.status_code in (409, 422):
                raise RefConflict(branch, expected_old_id) from e
            raise

    def list_directory(self, branch: str, path: str = "") -> list[DirectoryEntry]:
        ruta = quote(path.strip("/"))
        try:
            response = self._request(
                "GET",
                f"contents/{ruta}",
                params={"ref": branch},
                headers={"If-None-Match": ""},
            )
        except RemoteError as e:
            if e.status_code == 404:
                return []
            raise

        data = response.json()
        if not isinstance(data, list):
            data = [data]
        return [
            DirectoryEntry(name=item["name"], path=item["path"], type=item["type"])
            for item in data
        ]
