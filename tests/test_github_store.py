"""
test_github_store.py — Tests para el cliente de Git Data de GitHub.

No se hace ninguna llamada real: la sesión de requests es un mock.
"""

from __future__ import annotations

import base64
from unittest.mock import MagicMock

import pytest
import requests

from gitdrop.publishing.errors import RefConflict, RemoteError
from gitdrop.remote.github import GitHubObjectStore


def _response(status: int = 200, data=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = data if data is not None else {}
    resp.text = str(data)
    return resp


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def gh(session):
    return GitHubObjectStore("owner/repo", "tok", session=session)


class TestHeaders:
    def test_auth_header(self, session):
        GitHubObjectStore("owner/repo", "secreto", session=session)
        headers = session.headers.update.call_args[0][0]
        assert headers["Authorization"] == "Bearer secreto"
        assert headers["Accept"] == "application/vnd.github+json"


class TestBlobs:
    def test_create_blob_base64(self, gh, session):
        session.request.return_value = _response(201, {"sha": "abc"})
        assert gh.create_blob(b"hola") == "abc"

        method, url = session.request.call_args[0]
        payload = session.request.call_args[1]["json"]
        assert method == "POST"
        assert url == "https://api.github.com/repos/owner/repo/git/blobs"
        assert payload == {"content": base64.b64encode(b"hola").decode(), "encoding": "base64"}

    def test_get_blob_decodes(self, gh, session):
        session.request.return_value = _response(
            200, {"content": base64.b64encode(b"datos").decode(), "encoding": "base64"}
        )
        assert gh.get_blob("abc") == b"datos"

    def test_http_error_becomes_remote_error(self, gh, session):
        session.request.return_value = _response(500, {"message": "boom"})
        with pytest.raises(RemoteError) as exc:
            gh.create_blob(b"x")
        assert exc.value.status_code == 500
        assert "boom" in exc.value.message

    def test_connection_error(self, gh, session):
        session.request.side_effect = requests.ConnectionError("sin red")
        with pytest.raises(RemoteError) as exc:
            gh.create_blob(b"x")
        assert exc.value.status_code is None


class TestTreesAndCommits:
    def test_get_commit_returns_tree(self, gh, session):
        session.request.return_value = _response(200, {"tree": {"sha": "t1"}})
        assert gh.get_commit("c1") == "t1"

    def test_get_tree_recursive(self, gh, session):
        session.request.return_value = _response(200, {"tree": [
            {"path": "a.txt", "mode": "100644", "type": "blob", "sha": "b1"},
            {"path": "src", "mode": "040000", "type": "tree", "sha": "t2"},
        ]})
        assert gh.get_tree("t1") == {"a.txt": ("100644", "b1")}
        assert session.request.call_args[1]["params"] == {"recursive": "1"}

    def test_create_tree_with_base(self, gh, session):
        session.request.return_value = _response(201, {"sha": "t9"})
        entries = [{"path": "F/a.txt", "mode": "100644", "type": "blob", "sha": "b1"}]
        assert gh.create_tree("t1", entries) == "t9"
        assert session.request.call_args[1]["json"] == {"base_tree": "t1", "tree": entries}

    def test_create_commit(self, gh, session):
        session.request.return_value = _response(201, {"sha": "c2"})
        assert gh.create_commit("msg", "t9", ["c1"]) == "c2"
        assert session.request.call_args[1]["json"] == {
            "message": "msg", "tree": "t9", "parents": ["c1"],
        }


class TestRefs:
    def test_get_ref(self, gh, session):
        session.request.return_value = _response(200, {"object": {"sha": "c1"}})
        assert gh.get_ref("main") == "c1"
        assert session.request.call_args[0][1].endswith("/git/ref/heads/main")

    def test_update_ref_never_forces(self, gh, session):
        session.request.side_effect = [
            _response(200, {"object": {"sha": "c1"}}),
            _response(200, {"object": {"sha": "c2"}}),
        ]
        gh.update_ref("main", "c2", "c1")

        method, url = session.request.call_args[0]
        assert method == "PATCH"
        assert url.endswith("/git/refs/heads/main")
        assert session.request.call_args[1]["json"] == {"sha": "c2", "force": False}

    def test_update_ref_stale_tip(self, gh, session):
        session.request.return_value = _response(200, {"object": {"sha": "otro"}})
        with pytest.raises(RefConflict) as exc:
            gh.update_ref("main", "c2", "c1")
        assert exc.value.actual == "otro"
        # Solo se leyó el ref; no hubo PATCH
        assert session.request.call_count == 1

    def test_update_ref_not_fast_forward(self, gh, session):
        session.request.side_effect = [
            _response(200, {"object": {"sha": "c1"}}),
            _response(422, {"message": "Update is not a fast forward"}),
        ]
        with pytest.raises(RefConflict):
            gh.update_ref("main", "c2", "c1")

    def test_update_ref_other_error(self, gh, session):
        session.request.side_effect = [
            _response(200, {"object": {"sha": "c1"}}),
            _response(500, {"message": "boom"}),
        ]
        with pytest.raises(RemoteError):
            gh.update_ref("main", "c2", "c1")


class TestListDirectory:
    def test_listing(self, gh, session):
        session.request.return_value = _response(200, [
            {"name": "README.md", "path": "README.md", "type": "file"},
            {"name": "src", "path": "src", "type": "dir"},
        ])
        listing = gh.list_directory("main", "")
        assert [(e.name, e.type) for e in listing] == [("README.md", "file"), ("src", "dir")]
        assert session.request.call_args[1]["params"] == {"ref": "main"}

    def test_404_is_empty(self, gh, session):
        session.request.return_value = _response(404, {"message": "Not Found"})
        assert gh.list_directory("main", "nada") == []

    def test_other_error_propagates(self, gh, session):
        session.request.return_value = _response(403, {"message": "Forbidden"})
        with pytest.raises(RemoteError):
            gh.list_directory("main", "")
