"""
Display ordering and labels for rooms.
"""

from collections.abc import Iterable
from enum import IntEnum

from roomlink.models.rooms import Room


class GameState(IntEnum):
    """Room lifecycle as reported by the rooms API."""

    RECRUITING = 0
    STARTING = 1
    STARTED = 2
    ENDED = 3
    DESTROYED = 4


class QuickChatMode(IntEnum):
    FREE_CHAT = 1
    QUICK_CHAT = 2


def _display_key(room: Room) -> tuple[int, int]:
    recruiting = room.game_state == GameState.RECRUITING
    return (0 if recruiting else 1, -room.player_count)


def sort_rooms_for_display(rooms: Iterable[Room]) -> list[Room]:
    """
    Recruiting rooms first, then by player count descending.

    sorted() is stable, so equal rooms keep their fetch order.
    """
    return sorted(rooms, key=_display_key)


def describe_game_state(value: int | None) -> str:
    if value is None:
        return "unset"
    try:
        return GameState(value).name.lower()
    except ValueError:
        return f"unknown ({value})"


def describe_quick_chat(value: int | None) -> str:
    if value is None:
        return "unset"
    if value == QuickChatMode.FREE_CHAT:
        return "free"
    if value == QuickChatMode.QUICK_CHAT:
        return "quick"
    return f"unknown ({value})"
