from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from roomlink.directory.browser import RoomBrowser
from roomlink.directory.catalog import ServerCatalog
from roomlink.directory.errors import FeatureDisabledError, JoinTransportError, RoomsApiError
from roomlink.directory.join import JoinDirectClient, JoinDirectResult, build_join_query
from roomlink.directory.ranking import describe_game_state, describe_quick_chat, sort_rooms_for_display
from roomlink.directory.rooms_api import RoomDirectoryClient
from roomlink.models.rooms import JoinPayload, Room
from roomlink.util.game_code import format_game_id, parse_game_code

# =============================================================================
# Dependencies (objects built by the application lifespan)
# =============================================================================


def get_catalog(request: Request) -> ServerCatalog:
    return request.app.state.catalog


def get_directory_client(request: Request) -> RoomDirectoryClient:
    return request.app.state.directory_client


def get_join_client(request: Request) -> JoinDirectClient:
    return request.app.state.join_client


def get_browser(request: Request) -> RoomBrowser:
    return request.app.state.browser


# =============================================================================
# Servers and rooms
# =============================================================================

# The router prefix will be /api/rest, so these endpoints will be
# /api/rest/servers and /api/rest/servers/{server_id}/rooms
router = APIRouter(prefix="/servers", tags=["Servers"])


class ServerResponse(BaseModel):
    id: str
    label: str
    server_type: int


class RoomView(Room):
    game_state_label: str
    quick_chat_label: str


class RoomsResponse(BaseModel):
    server_id: str
    total_rooms: int
    public_rooms: int
    fetched_at: int
    rooms: list[RoomView]


def _room_view(room: Room) -> RoomView:
    return RoomView(
        **room.model_dump(exclude={"game_code"}),
        game_state_label=describe_game_state(room.game_state),
        quick_chat_label=describe_quick_chat(room.quick_chat),
    )


class JoinQueryRequest(BaseModel):
    ip: int
    port: int
    game_id: int
    matchmaker_ip: str | None = None
    matchmaker_port: str | int | None = None


class JoinQueryResponse(BaseModel):
    server_id: str
    query: str


@router.get("", response_model=list[ServerResponse])
async def list_servers(catalog: ServerCatalog = Depends(get_catalog)):
    """
    List the selectable servers, default first.
    """
    return [ServerResponse(id=entry.id, label=entry.label, server_type=entry.server_type) for entry in catalog]


@router.get("/{server_id}/rooms", response_model=RoomsResponse)
async def list_rooms(
    server_id: str,
    client: RoomDirectoryClient = Depends(get_directory_client),
):
    """
    Fetch the server's active rooms, recruiting rooms first.
    """
    try:
        snapshot = await client.fetch_rooms(server_id)
    except RoomsApiError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from None

    rooms = [_room_view(room) for room in sort_rooms_for_display(snapshot.rooms)]
    return RoomsResponse(
        server_id=snapshot.server_id,
        total_rooms=snapshot.total_rooms,
        public_rooms=snapshot.public_rooms,
        fetched_at=snapshot.fetched_at,
        rooms=rooms,
    )


@router.post("/{server_id}/join-query", response_model=JoinQueryResponse)
async def create_join_query(
    server_id: str,
    join_in: JoinQueryRequest,
    catalog: ServerCatalog = Depends(get_catalog),
):
    """
    Build the encrypted direct-join query for a room of this server.
    """
    server = catalog.resolve(server_id)
    payload = JoinPayload(server_type=server.server_type, **join_in.model_dump())
    query = build_join_query(payload, catalog.cipher_for(server))
    return JoinQueryResponse(server_id=server.id, query=query)


# =============================================================================
# Join handoff and room codes
# =============================================================================

join_router = APIRouter(tags=["Join"])


class JoinDirectRequest(BaseModel):
    query: str


class GameCodeResponse(BaseModel):
    code: str
    game_id: int


@join_router.post("/join-direct", response_model=JoinDirectResult)
async def join_direct(
    join_in: JoinDirectRequest,
    client: JoinDirectClient = Depends(get_join_client),
):
    """
    Hand a built query to the game client's localhost join endpoint.
    """
    try:
        return await client.join(join_in.query)
    except FeatureDisabledError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from None
    except JoinTransportError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.code) from None


@join_router.get("/game-codes/{code}", response_model=GameCodeResponse)
async def lookup_game_code(code: str):
    """
    Translate a typed room code into its game id.
    """
    try:
        game_id = parse_game_code(code)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
    return GameCodeResponse(code=format_game_id(game_id), game_id=game_id)


# =============================================================================
# Room browser (server-side selection with background refresh)
# =============================================================================

browser_router = APIRouter(prefix="/browser", tags=["Browser"])


class BrowserStateResponse(BaseModel):
    selected_server_id: str
    snapshot_server_id: str | None
    is_loading: bool
    last_error: str | None
    fetched_at: int | None
    rooms: list[RoomView]


class SelectServerRequest(BaseModel):
    server_id: str | None = None


class BrowserJoinRequest(BaseModel):
    room_key: str


def _browser_state(browser: RoomBrowser) -> BrowserStateResponse:
    snapshot = browser.snapshot
    return BrowserStateResponse(
        selected_server_id=browser.selected_server_id,
        snapshot_server_id=snapshot.server_id if snapshot else None,
        is_loading=browser.is_loading,
        last_error=browser.last_error,
        fetched_at=snapshot.fetched_at if snapshot else None,
        rooms=[_room_view(room) for room in browser.visible_rooms()],
    )


@browser_router.get("", response_model=BrowserStateResponse)
async def get_browser_state(browser: RoomBrowser = Depends(get_browser)):
    return _browser_state(browser)


@browser_router.post("/select", response_model=BrowserStateResponse)
async def select_server(select_in: SelectServerRequest, browser: RoomBrowser = Depends(get_browser)):
    """
    Switch the browsed server and refresh its rooms.
    """
    browser.select_server(select_in.server_id)
    await browser.refresh()
    return _browser_state(browser)


@browser_router.post("/refresh", response_model=BrowserStateResponse)
async def refresh_browser(browser: RoomBrowser = Depends(get_browser)):
    await browser.refresh()
    return _browser_state(browser)


@browser_router.post("/join", response_model=JoinDirectResult)
async def join_from_browser(
    join_in: BrowserJoinRequest,
    browser: RoomBrowser = Depends(get_browser),
    client: JoinDirectClient = Depends(get_join_client),
):
    """
    Join a room of the last snapshot through the localhost join endpoint.
    """
    try:
        query = browser.join_query(join_in.room_key)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found") from None

    try:
        return await client.join(query)
    except FeatureDisabledError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from None
    except JoinTransportError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.code) from None
