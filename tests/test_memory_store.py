"""
test_memory_store.py — Tests para el object store en memoria.
"""

from __future__ import annotations

import pytest

from gitdrop.publishing.errors import RefConflict, RemoteError
from gitdrop.remote.memory import InMemoryObjectStore


class TestBlobs:
    def test_git_compatible_id(self):
        """Mismo id que `git hash-object` para 'hello\\n'."""
        s = InMemoryObjectStore()
        assert s.create_blob(b"hello\n") == "ce013625030ba8dba906f756967f9e9ca394464a"

    def test_idempotent(self):
        s = InMemoryObjectStore()
        assert s.create_blob(b"x") == s.create_blob(b"x")
        assert s.blob_count == 1

    def test_get_blob(self):
        s = InMemoryObjectStore()
        assert s.get_blob(s.create_blob(b"datos")) == b"datos"

    def test_missing_blob(self):
        with pytest.raises(RemoteError) as exc:
            InMemoryObjectStore().get_blob("0" * 40)
        assert exc.value.status_code == 404


class TestTreesAndCommits:
    def test_sparse_tree_update(self, store):
        base = store.get_commit(store.get_ref("main"))
        nuevo = store.create_tree(base, [
            {"path": "F/a.txt", "mode": "100644", "type": "blob", "sha": store.create_blob(b"A")},
        ])
        contenido = store.get_tree(nuevo)
        assert set(contenido) == {"readme.md", "LICENSE", "src/app.py", "F/a.txt"}

    def test_tree_rejects_unknown_blob(self, store):
        with pytest.raises(RemoteError) as exc:
            store.create_tree("", [{"path": "a", "mode": "100644", "type": "blob", "sha": "f" * 40}])
        assert exc.value.status_code == 422

    def test_commit_records_parent(self, store):
        tip = store.get_ref("main")
        tree = store.get_commit(tip)
        commit = store.create_commit("msg", tree, [tip])
        assert store.commit_parents(commit) == [tip]


class TestRefs:
    def test_compare_and_swap(self, store):
        tip = store.get_ref("main")
        commit = store.create_commit("msg", store.get_commit(tip), [tip])
        store.update_ref("main", commit, tip)
        assert store.get_ref("main") == commit

    def test_stale_expected_raises(self, store):
        tip = store.get_ref("main")
        tree = store.get_commit(tip)
        primero = store.create_commit("uno", tree, [tip])
        segundo = store.create_commit("dos", tree, [tip])
        store.update_ref("main", primero, tip)

        with pytest.raises(RefConflict) as exc:
            store.update_ref("main", segundo, tip)
        assert exc.value.actual == primero
        assert store.get_ref("main") == primero

    def test_missing_branch(self):
        with pytest.raises(RemoteError):
            InMemoryObjectStore().get_ref("main")


class TestListDirectory:
    def test_root(self, store):
        listing = {e.name: e.type for e in store.list_directory("main")}
        assert listing == {"readme.md": "file", "LICENSE": "file", "src": "dir"}

    def test_subdirectory(self, store):
        listing = store.list_directory("main", "/src/")
        assert [(e.name, e.path, e.type) for e in listing] == [("app.py", "src/app.py", "file")]

    def test_unknown_branch_is_empty(self, store):
        assert store.list_directory("nope") == []
