"""
Direct-join handoff.

build_join_query() turns a room into the query string the game client mod
reads: each value is encrypted on its own with the server's JoinCipher, so the
address, port, server type and game id only travel as ciphertext.

JoinDirectClient delivers that query to the mod's localhost join endpoint.
"""

import asyncio
from dataclasses import dataclass
from urllib.parse import urlencode

import aiohttp

from roomlink.config.app_settings import FeatureSettings, JoinDirectSettings
from roomlink.directory.errors import FeatureDisabledError, JoinTransportError
from roomlink.models.rooms import JoinPayload, Room
from roomlink.util.ip_codec import ipv4_little_endian
from roomlink.util.join_cipher import JoinCipher
from roomlink.util.logging_helper import get_logger, shorten

logger = get_logger(__name__)


def join_payload_from_room(room: Room, server_type: int) -> JoinPayload:
    return JoinPayload(
        ip=room.ip_number,
        port=room.port,
        game_id=room.game_id,
        server_type=server_type,
        matchmaker_ip=room.matchmaker_ip,
        matchmaker_port=room.matchmaker_port,
    )


def _matchmaker_pair(payload: JoinPayload) -> tuple[str, str] | None:
    ip = (payload.matchmaker_ip or "").strip()
    port = "" if payload.matchmaker_port is None else str(payload.matchmaker_port).strip()
    if ip and port:
        return ip, port
    return None


def build_join_query(payload: JoinPayload, cipher: JoinCipher) -> str:
    """
    Build "?serverIP=..&serverPort=..&serverType=..&gameID=..".

    The matchmaker pair is appended only when both values are non-empty after
    trimming; a half-filled pair is left out entirely. Parameters are
    encrypted and emitted in this fixed order.
    """
    params = [
        ("serverIP", ipv4_little_endian(payload.ip)),
        ("serverPort", str(payload.port)),
        ("serverType", str(payload.server_type)),
        ("gameID", str(payload.game_id)),
    ]

    matchmaker = _matchmaker_pair(payload)
    if matchmaker is not None:
        params.append(("matchmakerIP", matchmaker[0]))
        params.append(("matchmakerPort", matchmaker[1]))

    encrypted = [(name, cipher.encrypt(value)) for name, value in params]
    return "?" + urlencode(encrypted)


def normalize_query_suffix(query: str) -> str:
    """Accept a query with or without its leading '?'."""
    trimmed = query.strip()
    if not trimmed:
        return ""
    return trimmed if trimmed.startswith("?") else f"?{trimmed}"


@dataclass
class JoinDirectResult:
    """Outcome reported by the localhost join endpoint."""

    status: int
    message: str
    ok: bool


class JoinDirectClient:
    """
    Calls the game client mod's localhost join endpoint with a built query.

    Usage:
        client = JoinDirectClient(app_config.join_direct, app_config.features)
        result = await client.join(query)
    """

    def __init__(self, settings: JoinDirectSettings, features: FeatureSettings | None = None):
        self.settings = settings
        self.features = features or FeatureSettings()

    def url_for(self, query: str) -> str:
        return f"{self.settings.localhost_base_url}{self.settings.join_path}{normalize_query_suffix(query)}"

    async def join(self, query: str) -> JoinDirectResult:
        """
        Raises:
            FeatureDisabledError: the game_servers feature is off
            JoinTransportError: the endpoint is unreachable, timed out, or the call failed
        """
        if not self.features.game_servers:
            raise FeatureDisabledError("game_servers")

        url = self.url_for(query)
        timeout = aiohttp.ClientTimeout(total=self.settings.timeout_ms / 1000)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as response:
                    status = response.status
                    message = await response.text()
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as exc:
            logger.warning("Join endpoint unreachable: %s", exc)
            raise JoinTransportError(JoinTransportError.UNREACHABLE) from exc
        except (aiohttp.ClientError, UnicodeDecodeError) as exc:
            logger.warning("Join request failed: %s", exc)
            raise JoinTransportError(JoinTransportError.ERROR) from exc

        ok = status == 200 and message.strip() == self.settings.success_message
        logger.info("Join endpoint answered %d (ok=%s): %s", status, ok, shorten(message.strip()))
        return JoinDirectResult(status=status, message=message, ok=ok)
