"""
Room browser state with latest-request-wins refreshes.

Room fetches can overlap: a periodic refresh may still be in flight when the
user switches server or refreshes by hand. Every refresh takes a token from
RequestGeneration and only applies its result if the token is still the most
recent one when the fetch returns; older results are dropped.
"""

import asyncio
import itertools
from dataclasses import dataclass

from roomlink.directory.catalog import ServerCatalog, ServerCatalogEntry
from roomlink.directory.errors import RoomsApiError
from roomlink.directory.join import build_join_query, join_payload_from_room
from roomlink.directory.ranking import sort_rooms_for_display
from roomlink.directory.rooms_api import RoomDirectoryClient
from roomlink.models.rooms import Room, RoomsSnapshot
from roomlink.util.logging_helper import get_logger

logger = get_logger(__name__)


class RequestGeneration:
    """Monotonic request counter; only the newest token is current."""

    def __init__(self):
        self._counter = itertools.count(1)
        self._latest = 0

    def issue(self) -> int:
        self._latest = next(self._counter)
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest

    @property
    def latest(self) -> int:
        return self._latest


@dataclass
class RefreshOutcome:
    """What happened to one refresh() call."""

    applied: bool
    snapshot: RoomsSnapshot | None = None
    error: str | None = None


class RoomBrowser:
    """
    Holds the selected server and the last applied rooms snapshot.

    Usage:
        browser = RoomBrowser(client, catalog)
        await browser.refresh()
        for room in browser.visible_rooms():
            ...
        query = browser.join_query(room.key)
    """

    def __init__(self, client: RoomDirectoryClient, catalog: ServerCatalog, server_id: str | None = None):
        self.client = client
        self.catalog = catalog
        self.selected_server_id = catalog.resolve(server_id).id
        self.snapshot: RoomsSnapshot | None = None
        self.last_error: str | None = None
        self.is_loading = False
        self._generation = RequestGeneration()

    def select_server(self, server_id: str | None) -> ServerCatalogEntry:
        entry = self.catalog.resolve(server_id)
        if entry.id != self.selected_server_id:
            logger.info("Selected server changed: %s -> %s", self.selected_server_id, entry.id)
        self.selected_server_id = entry.id
        return entry

    async def refresh(self) -> RefreshOutcome:
        """
        Fetch rooms for the selected server.

        Fetch errors are recorded in last_error rather than raised; a result
        that arrives after a newer refresh started is discarded unapplied.
        """
        token = self._generation.issue()
        self.is_loading = True
        self.last_error = None

        try:
            snapshot = await self.client.fetch_rooms(self.selected_server_id)
        except RoomsApiError as exc:
            if not self._generation.is_current(token):
                logger.debug("Discarding stale refresh error (request %d)", token)
                return RefreshOutcome(applied=False, error=str(exc))
            self.last_error = str(exc)
            logger.warning("Rooms refresh failed: %s", exc)
            return RefreshOutcome(applied=True, error=str(exc))
        finally:
            # A newer refresh owns the flag once it has started
            if self._generation.is_current(token):
                self.is_loading = False

        if not self._generation.is_current(token):
            logger.debug("Discarding stale rooms snapshot (request %d, latest %d)", token, self._generation.latest)
            return RefreshOutcome(applied=False, snapshot=snapshot)

        self.snapshot = snapshot
        return RefreshOutcome(applied=True, snapshot=snapshot)

    async def run_auto_refresh(self, interval: float) -> None:
        """Refresh forever every `interval` seconds; cancel the task to stop."""
        while True:
            await self.refresh()
            await asyncio.sleep(interval)

    def visible_rooms(self) -> list[Room]:
        if self.snapshot is None:
            return []
        return sort_rooms_for_display(self.snapshot.rooms)

    def join_query(self, room_key: str) -> str:
        """
        Build the encrypted join query for a room of the current snapshot.

        The server type and cipher come from the server the snapshot was
        fetched from, which may differ from the one selected since.

        Raises:
            KeyError: no room with that key in the current snapshot
        """
        room = self.snapshot.find_room(room_key) if self.snapshot else None
        if room is None:
            raise KeyError(room_key)

        source = self.catalog.resolve(self.snapshot.server_id)
        payload = join_payload_from_room(room, source.server_type)
        return build_join_query(payload, self.catalog.cipher_for(source))
