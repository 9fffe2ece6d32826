"""
Tests for room display ordering and labels.
"""

import pytest

from roomlink.directory.normalize import decode_room
from roomlink.directory.ranking import (
    GameState,
    describe_game_state,
    describe_quick_chat,
    sort_rooms_for_display,
)


def make_room(port: int, game_state=None, player_count=None):
    record = {"IP": 1, "Port": port, "GameId": 3}
    if game_state is not None:
        record["GameState"] = game_state
    if player_count is not None:
        record["PlayerCount"] = player_count
    return decode_room(record)


class TestSortRoomsForDisplay:
    def test_recruiting_first_then_player_count(self):
        rooms = [make_room(1, 0, 3), make_room(2, 2, 10), make_room(3, 0, 8)]

        ordered = sort_rooms_for_display(rooms)

        assert [(room.game_state, room.player_count) for room in ordered] == [(0, 8), (0, 3), (2, 10)]

    def test_ties_keep_fetch_order(self):
        rooms = [make_room(1, 0, 5), make_room(2, 0, 5), make_room(3, 1, 5), make_room(4, 0, 5)]

        ordered = sort_rooms_for_display(rooms)

        assert [room.port for room in ordered] == [1, 2, 4, 3]

    def test_unknown_state_counts_as_not_recruiting(self):
        rooms = [make_room(1, None, 9), make_room(2, 0, 1), make_room(3, 7, 4)]

        ordered = sort_rooms_for_display(rooms)

        assert [room.port for room in ordered] == [2, 1, 3]

    def test_input_is_not_modified(self):
        rooms = [make_room(1, 2, 1), make_room(2, 0, 1)]

        sort_rooms_for_display(rooms)

        assert [room.port for room in rooms] == [1, 2]

    def test_accepts_tuples(self):
        assert sort_rooms_for_display(()) == []


class TestLabels:
    @pytest.mark.parametrize(
        "value, label",
        [
            (GameState.RECRUITING, "recruiting"),
            (1, "starting"),
            (2, "started"),
            (3, "ended"),
            (4, "destroyed"),
            (9, "unknown (9)"),
            (None, "unset"),
        ],
    )
    def test_game_state(self, value, label):
        assert describe_game_state(value) == label

    @pytest.mark.parametrize("value, label", [(1, "free"), (2, "quick"), (0, "unknown (0)"), (None, "unset")])
    def test_quick_chat(self, value, label):
        assert describe_quick_chat(value) == label
