"""
Rooms API client.

Fetches GET {domain}/api/games/all_for_web for one catalog server and turns the
response into a RoomsSnapshot. A failed request (transport, non-2xx status,
unparsable body) raises RoomsApiError; malformed room records are dropped by
the normalizer and never fail the fetch.
"""

import asyncio
import json
import time

import aiohttp

from roomlink.directory.catalog import ServerCatalog
from roomlink.directory.errors import RoomsApiError
from roomlink.directory.normalize import normalize_rooms, read_count, read_metadata
from roomlink.models.rooms import RoomsSnapshot
from roomlink.util.logging_helper import get_logger, shorten

logger = get_logger(__name__)

ROOMS_API_PATH = "api/games/all_for_web"

REQUEST_HEADERS = {
    "Accept": "application/json",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


def build_rooms_api_url(domain: str) -> str:
    """
    Join a catalog domain and the rooms path.

    Trailing slashes on the domain are dropped, so "https://example.com/" and
    "https://example.com" both give "https://example.com/api/games/all_for_web".
    """
    normalized = domain.strip().rstrip("/")
    return f"{normalized}/{ROOMS_API_PATH}"


def extract_error_message(body: str, status: int) -> str:
    """Pick the message out of {"error": {"message"}} or {"message"}, else a generic one."""
    try:
        data = json.loads(body)
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        candidates = []
        if isinstance(error, dict):
            candidates.append(error.get("message"))
        candidates.append(data.get("message"))
        for candidate in candidates:
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()

    return f"Request failed with status {status}"


class RoomDirectoryClient:
    """
    Reads room listings for the servers of a ServerCatalog.

    A shared aiohttp.ClientSession may be passed in (the application does so);
    otherwise a short-lived session is opened for every fetch. Each call issues
    exactly one request and keeps no state between calls.
    """

    def __init__(self, catalog: ServerCatalog, session: aiohttp.ClientSession | None = None):
        self.catalog = catalog
        self._session = session

    async def fetch_rooms(self, server_id: str | None) -> RoomsSnapshot:
        """
        Fetch and normalize the rooms of one server.

        Args:
            server_id: Catalog id; unknown or blank ids use the first server

        Returns:
            A fresh RoomsSnapshot in fetch order

        Raises:
            RoomsApiError: network failure, non-2xx status, or invalid JSON
        """
        server = self.catalog.resolve(server_id)
        url = build_rooms_api_url(server.rooms_api_domain)
        logger.debug("Fetching rooms for '%s' from %s", server.id, url)

        data = await self._request(url)
        if not isinstance(data, dict):
            raise RoomsApiError("Rooms API returned an unexpected payload")

        rooms = normalize_rooms(data.get("games"))
        metadata = read_metadata(data.get("metadata"))

        snapshot = RoomsSnapshot(
            server_id=server.id,
            rooms=tuple(rooms),
            total_rooms=read_count(metadata.all_games_count, len(rooms)),
            public_rooms=read_count(metadata.matching_games_count, len(rooms)),
            fetched_at=int(time.time() * 1000),
        )
        logger.info(
            "Fetched %d room(s) for '%s' (total=%d, public=%d)",
            len(snapshot.rooms),
            server.id,
            snapshot.total_rooms,
            snapshot.public_rooms,
        )
        return snapshot

    async def _request(self, url: str):
        if self._session is not None:
            return await self._get_json(self._session, url)
        async with aiohttp.ClientSession() as session:
            return await self._get_json(session, url)

    async def _get_json(self, session: aiohttp.ClientSession, url: str):
        status = None
        try:
            async with session.get(url, headers=REQUEST_HEADERS) as response:
                status = response.status
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Rooms request to %s failed: %s", url, exc)
            raise RoomsApiError(str(exc) or type(exc).__name__) from exc
        except UnicodeDecodeError as exc:
            logger.warning("Rooms API body from %s is not valid text: %s", url, exc)
            raise RoomsApiError("Rooms API returned an undecodable body", status) from exc

        if not 200 <= status < 300:
            message = extract_error_message(body, status)
            logger.warning("Rooms API answered %d: %s", status, shorten(message))
            raise RoomsApiError(message, status)

        try:
            return json.loads(body)
        except ValueError as exc:
            raise RoomsApiError("Rooms API returned invalid JSON", status) from exc
