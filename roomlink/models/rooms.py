"""
Room directory data model.

RoomRaw mirrors the rooms API record as-is: every field may be missing or of
the wrong type. Room is the canonical, immutable value produced by the
normalizer. RoomsSnapshot is one fetch result and is never updated in place.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from roomlink.util.game_code import format_game_id

# =============================================================================
# Upstream (untrusted) records
# =============================================================================


class RoomRaw(BaseModel):
    """One entry of the rooms API "games" array, untyped."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    ip: Any = Field(default=None, alias="IP")
    port: Any = Field(default=None, alias="Port")
    game_id: Any = Field(default=None, alias="GameId")
    player_count: Any = Field(default=None, alias="PlayerCount")
    host_name: Any = Field(default=None, alias="HostName")
    true_host_name: Any = Field(default=None, alias="TrueHostName")
    host_platform_name: Any = Field(default=None, alias="HostPlatformName")
    platform: Any = Field(default=None, alias="Platform")
    quick_chat: Any = Field(default=None, alias="QuickChat")
    age: Any = Field(default=None, alias="Age")
    max_players: Any = Field(default=None, alias="MaxPlayers")
    num_impostors: Any = Field(default=None, alias="NumImpostors")
    map_id: Any = Field(default=None, alias="MapId")
    language: Any = Field(default=None, alias="Language")
    game_state: Any = Field(default=None, alias="GameState")

    # Matchmaker address synonyms, first present wins
    matchmaker_ip_upper: Any = Field(default=None, alias="MatchmakerIP")
    matchmaker_ip_camel: Any = Field(default=None, alias="MatchmakerIp")
    matchmaker_host: Any = Field(default=None, alias="MatchmakerHost")
    matchmaker_port: Any = Field(default=None, alias="MatchmakerPort")
    matchmaker_port_number: Any = Field(default=None, alias="MatchmakerPortNumber")
    matchmaker_port_string: Any = Field(default=None, alias="MatchmakerPortString")
    matchmaker_port_value: Any = Field(default=None, alias="MatchmakerPortValue")

    def matchmaker_ip_candidates(self) -> tuple[Any, ...]:
        return (self.matchmaker_ip_upper, self.matchmaker_ip_camel, self.matchmaker_host)

    def matchmaker_port_candidates(self) -> tuple[Any, ...]:
        return (
            self.matchmaker_port,
            self.matchmaker_port_number,
            self.matchmaker_port_string,
            self.matchmaker_port_value,
        )


class RoomsMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    all_games_count: Any = Field(default=None, alias="allGamesCount")
    matching_games_count: Any = Field(default=None, alias="matchingGamesCount")


# =============================================================================
# Canonical model
# =============================================================================


class Room(BaseModel):
    """A normalized active game session."""

    model_config = ConfigDict(frozen=True)

    key: str
    ip_number: int
    ip_big_endian: str
    ip_little_endian: str
    port: int
    game_id: int
    host_name: str = "-"
    true_host_name: str = "-"
    host_platform_name: str = "-"
    platform: str = "-"
    quick_chat: int | None = None
    age_seconds: int | None = None
    max_players: int = 0
    player_count: int = 0
    num_impostors: int | None = None
    map_id: str = "-"
    language: str = "-"
    game_state: int | None = None
    matchmaker_ip: str | None = None
    matchmaker_port: str | None = None

    @computed_field
    @property
    def game_code(self) -> str:
        return format_game_id(self.game_id)


class RoomsSnapshot(BaseModel):
    """The result of one rooms fetch."""

    model_config = ConfigDict(frozen=True)

    server_id: str
    rooms: tuple[Room, ...] = ()
    total_rooms: int = 0
    public_rooms: int = 0
    fetched_at: int  # epoch milliseconds

    def find_room(self, key: str) -> Room | None:
        for room in self.rooms:
            if room.key == key:
                return room
        return None


# =============================================================================
# Join handoff
# =============================================================================


class JoinPayload(BaseModel):
    """Everything the game client needs to connect straight to a room."""

    ip: int
    port: int
    game_id: int
    server_type: int
    matchmaker_ip: str | None = None
    matchmaker_port: str | int | None = None
