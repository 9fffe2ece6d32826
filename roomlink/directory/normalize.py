"""
Normalization of untrusted rooms API records.

Each raw record is decoded on its own. A record that cannot produce an IP,
port and game id raises SkippedRoom inside decode_room(); normalize_rooms()
collects only the records that decoded, so one bad entry never costs the
whole listing.
"""

import math
import re
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from roomlink.directory.errors import SkippedRoom
from roomlink.models.rooms import Room, RoomRaw, RoomsMetadata
from roomlink.util.game_code import to_int32
from roomlink.util.ip_codec import ipv4_big_endian, ipv4_little_endian, to_uint32
from roomlink.util.logging_helper import get_logger

logger = get_logger(__name__)

PLACEHOLDER = "-"

# Leading decimal integer, the part a lenient integer parse accepts ("22023abc" -> 22023)
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


# =============================================================================
# Field sanitizers
# =============================================================================


def to_safe_integer(value: Any) -> int | None:
    """
    Accept a finite number or a string starting with a decimal integer.

    Floats are truncated toward zero. Booleans, blank strings, NaN/inf and
    anything else give None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return math.trunc(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def sanitize_string(value: Any, fallback: str = PLACEHOLDER) -> str:
    if not isinstance(value, str):
        return fallback
    trimmed = value.strip()
    return trimmed if trimmed else fallback


def _first_present(values: Iterable[Any]) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def pick_matchmaker_ip(raw: RoomRaw) -> str | None:
    value = _first_present(raw.matchmaker_ip_candidates())
    if not isinstance(value, str):
        return None
    return value.strip() or None


def pick_matchmaker_port(raw: RoomRaw) -> str | None:
    value = _first_present(raw.matchmaker_port_candidates())
    if value is None:
        return None
    return _stringify(value).strip() or None


def read_count(value: Any, fallback: int) -> int:
    """Metadata counts are only trusted when they are finite numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if isinstance(value, float) and not math.isfinite(value):
        return fallback
    return math.trunc(value)


# =============================================================================
# Record decoding
# =============================================================================


def decode_room(item: Any) -> Room:
    """
    Decode one raw record into a Room.

    Raises:
        SkippedRoom: the record is not an object or lacks IP, Port or GameId
    """
    if isinstance(item, RoomRaw):
        raw = item
    else:
        try:
            raw = RoomRaw.model_validate(item)
        except ValidationError:
            raise SkippedRoom(f"record is not an object: {type(item).__name__}") from None

    ip = to_safe_integer(raw.ip)
    port = to_safe_integer(raw.port)
    game_id = to_safe_integer(raw.game_id)
    if ip is None:
        raise SkippedRoom("missing or invalid IP")
    if port is None:
        raise SkippedRoom("missing or invalid Port")
    if game_id is None:
        raise SkippedRoom("missing or invalid GameId")

    ip_number = to_uint32(ip)
    game_id = to_int32(game_id)
    host_name = sanitize_string(raw.host_name)

    matchmaker_ip = pick_matchmaker_ip(raw)
    matchmaker_port = pick_matchmaker_port(raw)
    has_matchmaker = matchmaker_ip is not None and matchmaker_port is not None

    return Room(
        key=f"{game_id}|{ip_number}|{port}",
        ip_number=ip_number,
        ip_big_endian=ipv4_big_endian(ip_number),
        ip_little_endian=ipv4_little_endian(ip_number),
        port=port,
        game_id=game_id,
        host_name=host_name,
        true_host_name=sanitize_string(raw.true_host_name, host_name),
        host_platform_name=sanitize_string(raw.host_platform_name),
        platform=sanitize_string(raw.platform),
        quick_chat=to_safe_integer(raw.quick_chat),
        age_seconds=to_safe_integer(raw.age),
        max_players=to_safe_integer(raw.max_players) or 0,
        player_count=to_safe_integer(raw.player_count) or 0,
        num_impostors=to_safe_integer(raw.num_impostors),
        map_id=sanitize_string(raw.map_id),
        language=sanitize_string(raw.language),
        game_state=to_safe_integer(raw.game_state),
        matchmaker_ip=matchmaker_ip if has_matchmaker else None,
        matchmaker_port=matchmaker_port if has_matchmaker else None,
    )


def normalize_room(item: Any) -> Room | None:
    """decode_room() that reports a skipped record as None."""
    try:
        return decode_room(item)
    except SkippedRoom as exc:
        logger.debug("Skipping room record: %s", exc.reason)
        return None


def normalize_rooms(items: Any) -> list[Room]:
    """Decode every record of a "games" array, keeping fetch order. Non-lists yield []."""
    if not isinstance(items, list):
        if items is not None:
            logger.warning("Rooms payload 'games' is %s, not a list", type(items).__name__)
        return []

    rooms = []
    for item in items:
        room = normalize_room(item)
        if room is not None:
            rooms.append(room)

    skipped = len(items) - len(rooms)
    if skipped:
        logger.info("Dropped %d malformed room record(s) of %d", skipped, len(items))
    return rooms


def read_metadata(value: Any) -> RoomsMetadata:
    if not isinstance(value, dict):
        return RoomsMetadata()
    return RoomsMetadata.model_validate(value)
