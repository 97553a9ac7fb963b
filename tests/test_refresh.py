"""
test_refresh.py — Tests para el refresco del listado y el retry acotado.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gitdrop.config import RefreshConfig
from gitdrop.publishing.errors import RemoteError
from gitdrop.publishing.refresh import ListingRefresher, expected_names, retry_async
from gitdrop.remote.store import DirectoryEntry

SIN_ESPERAS = RefreshConfig(initial_delay=0, retry_delay=0, max_attempts=3, backoff_base=0)


class TestRetryAsync:
    def test_success_first_try(self):
        fn = AsyncMock(return_value="ok")
        assert asyncio.run(retry_async(fn, base_delay=0)) == "ok"
        assert fn.await_count == 1

    def test_retries_then_succeeds(self):
        fn = AsyncMock(side_effect=[RemoteError("x", 502), "ok"])
        assert asyncio.run(retry_async(fn, base_delay=0)) == "ok"
        assert fn.await_count == 2

    def test_never_more_than_three(self):
        fn = AsyncMock(side_effect=RemoteError("x", 502))
        with pytest.raises(RemoteError):
            asyncio.run(retry_async(fn, attempts=10, base_delay=0))
        assert fn.await_count == 3

    def test_other_errors_not_retried(self):
        fn = AsyncMock(side_effect=ValueError("bug"))
        with pytest.raises(ValueError):
            asyncio.run(retry_async(fn, base_delay=0))
        assert fn.await_count == 1

    def test_exponential_backoff(self):
        fn = AsyncMock(side_effect=RemoteError("x", 502))
        with patch("gitdrop.publishing.refresh.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(RemoteError):
                asyncio.run(retry_async(fn, attempts=3, base_delay=0.5))
        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]


class TestExpectedNames:
    def test_root(self):
        assert expected_names(["F/a.txt", "README.md"], "/") == {"F", "README.md"}

    def test_subdirectory(self):
        assert expected_names(["docs/F/a.txt", "README.md"], "/docs") == {"F"}

    def test_empty(self):
        assert expected_names([], "/") == set()


class TestListingRefresher:
    def _store(self, *listados):
        store = MagicMock()
        store.list_directory.side_effect = list(listados)
        return store

    def test_single_fetch_when_caught_up(self):
        listing = [DirectoryEntry("F", "F", "dir")]
        store = self._store(listing)
        on_listing = MagicMock()

        resultado = asyncio.run(
            ListingRefresher(store, SIN_ESPERAS, on_listing).refresh("main", "/", ["F/a.txt"])
        )

        assert resultado == listing
        store.list_directory.assert_called_once_with("main", "/")
        on_listing.assert_called_once_with(listing)

    def test_second_fetch_when_lagging(self):
        viejo = [DirectoryEntry("README.md", "README.md", "file")]
        nuevo = viejo + [DirectoryEntry("F", "F", "dir")]
        store = self._store(viejo, nuevo)

        resultado = asyncio.run(ListingRefresher(store, SIN_ESPERAS).refresh("main", "/", ["F/a.txt"]))

        assert resultado == nuevo
        assert store.list_directory.call_count == 2

    def test_only_one_extra_fetch(self):
        viejo = [DirectoryEntry("README.md", "README.md", "file")]
        store = self._store(viejo, viejo)

        resultado = asyncio.run(ListingRefresher(store, SIN_ESPERAS).refresh("main", "/", ["F/a.txt"]))

        assert resultado == viejo
        assert store.list_directory.call_count == 2

    def test_failure_returns_none(self):
        store = MagicMock()
        store.list_directory.side_effect = RemoteError("caído", 503)
        on_listing = MagicMock()

        resultado = asyncio.run(
            ListingRefresher(store, SIN_ESPERAS, on_listing).refresh("main", "/", ["F/a.txt"])
        )

        assert resultado is None
        assert store.list_directory.call_count == 3
        on_listing.assert_not_called()
