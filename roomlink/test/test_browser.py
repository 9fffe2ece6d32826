"""
Tests for the room browser and its latest-request-wins refresh.

A scripted directory client hands out one pending future per fetch so tests
decide exactly when (and in which order) responses arrive.
"""

import asyncio
import contextlib
from urllib.parse import parse_qsl

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from roomlink.directory.browser import RequestGeneration, RoomBrowser
from roomlink.directory.catalog import ServerCatalog, ServerCatalogEntry
from roomlink.directory.errors import RoomsApiError
from roomlink.directory.normalize import decode_room
from roomlink.directory.rooms_api import ROOMS_API_PATH, RoomDirectoryClient
from roomlink.models.rooms import RoomsSnapshot

TEST_AES_KEY = "0123456789abcdef"
TEST_AES_IV = "fedcba9876543210"


class ScriptedClient:
    """Directory client whose fetches complete only when the test resolves them."""

    def __init__(self):
        self.pending: list[tuple[str, asyncio.Future]] = []

    async def fetch_rooms(self, server_id):
        future = asyncio.get_running_loop().create_future()
        self.pending.append((server_id, future))
        return await future


def make_catalog() -> ServerCatalog:
    return ServerCatalog(
        [
            ServerCatalogEntry("asia", "Asia", "https://asia.example.com", 2, TEST_AES_KEY, TEST_AES_IV),
            ServerCatalogEntry("na", "NA", "https://na.example.com", 5, TEST_AES_KEY, TEST_AES_IV),
        ]
    )


def make_snapshot(server_id: str, *records) -> RoomsSnapshot:
    rooms = tuple(decode_room(record) for record in records)
    return RoomsSnapshot(
        server_id=server_id,
        rooms=rooms,
        total_rooms=len(rooms),
        public_rooms=len(rooms),
        fetched_at=1,
    )


class TestRequestGeneration:
    def test_only_latest_token_is_current(self):
        generation = RequestGeneration()

        first = generation.issue()
        second = generation.issue()

        assert second > first
        assert generation.is_current(second)
        assert not generation.is_current(first)
        assert generation.latest == second


class TestRefresh:
    @pytest.mark.asyncio
    async def test_applies_result(self):
        client = ScriptedClient()
        browser = RoomBrowser(client, make_catalog())
        snapshot = make_snapshot("asia", {"IP": 1, "Port": 2, "GameId": 3})

        task = asyncio.create_task(browser.refresh())
        await asyncio.sleep(0)
        assert browser.is_loading
        client.pending[0][1].set_result(snapshot)
        outcome = await task

        assert outcome.applied
        assert browser.snapshot is snapshot
        assert not browser.is_loading
        assert client.pending[0][0] == "asia"

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self):
        client = ScriptedClient()
        browser = RoomBrowser(client, make_catalog())
        older = make_snapshot("asia", {"IP": 1, "Port": 1, "GameId": 3})
        newer = make_snapshot("na", {"IP": 1, "Port": 2, "GameId": 3})

        first = asyncio.create_task(browser.refresh())
        await asyncio.sleep(0)
        browser.select_server("na")
        second = asyncio.create_task(browser.refresh())
        await asyncio.sleep(0)

        client.pending[1][1].set_result(newer)
        second_outcome = await second
        client.pending[0][1].set_result(older)
        first_outcome = await first

        assert second_outcome.applied
        assert not first_outcome.applied
        assert browser.snapshot is newer

    @pytest.mark.asyncio
    async def test_stale_error_is_discarded(self):
        client = ScriptedClient()
        browser = RoomBrowser(client, make_catalog())
        snapshot = make_snapshot("asia")

        first = asyncio.create_task(browser.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(browser.refresh())
        await asyncio.sleep(0)

        client.pending[1][1].set_result(snapshot)
        await second
        client.pending[0][1].set_exception(RoomsApiError("server unavailable", 503))
        outcome = await first

        assert not outcome.applied
        assert outcome.error == "server unavailable (503)"
        assert browser.last_error is None
        assert browser.snapshot is snapshot

    @pytest.mark.asyncio
    async def test_current_error_is_recorded(self):
        client = ScriptedClient()
        browser = RoomBrowser(client, make_catalog())

        task = asyncio.create_task(browser.refresh())
        await asyncio.sleep(0)
        client.pending[0][1].set_exception(RoomsApiError("server unavailable", 503))
        outcome = await task

        assert outcome.applied
        assert browser.last_error == "server unavailable (503)"
        assert not browser.is_loading


class TestSelectionAndJoin:
    def test_unknown_server_selects_default(self):
        browser = RoomBrowser(ScriptedClient(), make_catalog(), server_id="na")

        assert browser.selected_server_id == "na"
        assert browser.select_server("nowhere").id == "asia"
        assert browser.selected_server_id == "asia"

    def test_visible_rooms_are_ranked(self):
        browser = RoomBrowser(ScriptedClient(), make_catalog())
        browser.snapshot = make_snapshot(
            "asia",
            {"IP": 1, "Port": 1, "GameId": 3, "GameState": 2, "PlayerCount": 10},
            {"IP": 1, "Port": 2, "GameId": 3, "GameState": 0, "PlayerCount": 3},
            {"IP": 1, "Port": 3, "GameId": 3, "GameState": 0, "PlayerCount": 8},
        )

        assert [room.port for room in browser.visible_rooms()] == [3, 2, 1]

    def test_visible_rooms_before_first_fetch(self):
        assert RoomBrowser(ScriptedClient(), make_catalog()).visible_rooms() == []

    def test_join_uses_snapshot_server_type(self):
        catalog = make_catalog()
        browser = RoomBrowser(ScriptedClient(), catalog)
        browser.snapshot = make_snapshot("na", {"IP": 16909060, "Port": 22023, "GameId": -100})
        browser.select_server("asia")

        query = browser.join_query("-100|16909060|22023")

        cipher = catalog.cipher_for(catalog.resolve("na"))
        params = {name: cipher.decrypt(value) for name, value in parse_qsl(query[1:])}
        assert params == {"serverIP": "4.3.2.1", "serverPort": "22023", "serverType": "5", "gameID": "-100"}

    def test_join_unknown_room(self):
        browser = RoomBrowser(ScriptedClient(), make_catalog())

        with pytest.raises(KeyError):
            browser.join_query("missing")


class TestAutoRefresh:
    """The background refresh loop keeps running across failed fetches."""

    @pytest.mark.asyncio
    async def test_survives_undecodable_body(self):
        hits = []

        async def handle(request: web.Request) -> web.Response:
            hits.append(request.path)
            return web.Response(body=b'{"games": [\xff]}', content_type="application/json", charset="utf-8")

        app = web.Application()
        app.router.add_get(f"/{ROOMS_API_PATH}", handle)

        async with TestServer(app) as server:
            catalog = ServerCatalog(
                [ServerCatalogEntry("asia", "Asia", f"http://{server.host}:{server.port}", 2, TEST_AES_KEY, TEST_AES_IV)]
            )
            browser = RoomBrowser(RoomDirectoryClient(catalog), catalog)
            task = asyncio.create_task(browser.run_auto_refresh(0.05))
            try:
                for _ in range(400):
                    if len(hits) >= 2 and browser.last_error is not None and not browser.is_loading:
                        break
                    await asyncio.sleep(0.005)

                assert len(hits) >= 2
                assert browser.last_error is not None
                assert not browser.is_loading
                assert not task.done()
            finally:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        assert browser.snapshot is None
