"""
Pydantic schemas：API 的 request / response 格式
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models import GameStatus, Seat, BotActor


# ============ Room ============

class RoomResponse(BaseModel):
    id: str
    code: str
    status: GameStatus
    player1_id: str
    player2_id: Optional[str] = None
    current_turn: Optional[Seat] = None
    board: str
    winner_id: Optional[str] = None
    is_draw: bool = False
    version: int
    spectators: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JoinResponse(BaseModel):
    room: RoomResponse
    outcome: str
    is_spectator: bool


class LeaveResponse(BaseModel):
    outcome: str
    message: str
    room: Optional[RoomResponse] = None


class MessageResponse(BaseModel):
    message: str


# ============ Game ============

class MoveSubmit(BaseModel):
    position: int = Field(..., ge=0, le=8, description="Cell index 0-8, row-major")
    version: Optional[int] = Field(None, ge=0, description="Version the client last saw")


class LastMove(BaseModel):
    position: int
    symbol: str
    move_order: int


class GameStateResponse(BaseModel):
    room: RoomResponse
    role: str
    last_move: Optional[LastMove] = None


class GameStatusResponse(BaseModel):
    status: GameStatus
    current_turn: Optional[Seat] = None
    is_my_turn: bool
    has_winner: bool
    is_draw: bool
    version: int
    updated_at: Optional[datetime] = None


# ============ Bot ============

class BotGameCreate(BaseModel):
    go_first: bool = True


class BotMoveEntry(BaseModel):
    player: BotActor
    position: int
    symbol: str
    move_order: int


class BotGameResponse(BaseModel):
    id: str
    board: str
    player_symbol: str
    bot_symbol: str
    current_turn: Optional[BotActor] = None
    status: GameStatus
    winner: Optional[BotActor] = None
    version: int
    moves: List[BotMoveEntry] = Field(default_factory=list)


class BotMoveResponse(BaseModel):
    game: BotGameResponse
    bot_move: Optional[int] = None


class BotGameSummary(BaseModel):
    id: str
    status: GameStatus
    winner: Optional[BotActor] = None
    move_count: int
    created_at: Optional[datetime] = None


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class GameStats(BaseModel):
    total: int
    wins: int
    losses: int
    draws: int


class BotHistoryResponse(BaseModel):
    games: List[BotGameSummary]
    pagination: Pagination
    stats: GameStats


# ============ Replay ============

class ReplayFrame(BaseModel):
    move_order: int
    player: str
    position: int
    symbol: str
    board_after_move: str
    created_at: Optional[datetime] = None


class ReplayResponse(BaseModel):
    room: RoomResponse
    moves: List[ReplayFrame]
    total_moves: int


class RoomHistoryEntry(BaseModel):
    id: str
    code: str
    player1_id: str
    player2_id: Optional[str] = None
    winner_id: Optional[str] = None
    is_draw: bool
    move_count: int
    result: str
    created_at: Optional[datetime] = None


class RoomHistoryResponse(BaseModel):
    games: List[RoomHistoryEntry]
    pagination: Pagination
    stats: GameStats
