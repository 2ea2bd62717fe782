"""
SQLAlchemy ORM Models

資料表：
- Room：玩家對玩家的房間（含樂觀鎖 version）
- Move：Room 的落子紀錄（append-only，move_order 從 1 開始連續遞增）
- Spectator：觀戰者
- BotGame：玩家對 Bot 的遊戲（含樂觀鎖 version）
- BotMove：BotGame 的落子紀錄

board 欄位是 9 字元字串（見 services.board），是 move log 的快取投影
"""
from datetime import datetime, timezone
from enum import Enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base
from services.board import EMPTY_BOARD


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameStatus(str, Enum):
    """Room / BotGame 的生命週期：WAITING -> IN_PROGRESS -> FINISHED"""
    WAITING = "waiting"
    IN_PROGRESS = "in-progress"
    FINISHED = "finished"


class Seat(str, Enum):
    """Room 內的座位；player1 固定下 X，player2 固定下 O"""
    PLAYER1 = "player1"
    PLAYER2 = "player2"

    def other(self) -> "Seat":
        return Seat.PLAYER2 if self == Seat.PLAYER1 else Seat.PLAYER1


class BotActor(str, Enum):
    """BotGame 的行動者"""
    HUMAN = "player"
    BOT = "bot"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=_new_id)
    code = Column(String(16), unique=True, nullable=False, index=True)
    status = Column(
        SAEnum(GameStatus, values_callable=_enum_values, native_enum=False),
        nullable=False,
        default=GameStatus.WAITING,
    )
    player1_id = Column(String(64), nullable=False)
    player2_id = Column(String(64), nullable=True)
    current_turn = Column(
        SAEnum(Seat, values_callable=_enum_values, native_enum=False),
        nullable=True,
        default=Seat.PLAYER1,
    )
    board = Column(String(9), nullable=False, default=EMPTY_BOARD)
    winner_id = Column(String(64), nullable=True)
    is_draw = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    moves = relationship(
        "Move",
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="Move.move_order",
    )
    spectators = relationship(
        "Spectator",
        back_populates="room",
        cascade="all, delete-orphan",
    )


class Move(Base):
    __tablename__ = "moves"
    __table_args__ = (
        UniqueConstraint("room_id", "move_order", name="uq_moves_room_order"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = Column(String(64), nullable=False)
    position = Column(Integer, nullable=False)
    symbol = Column(String(1), nullable=False)
    move_order = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    room = relationship("Room", back_populates="moves")


class Spectator(Base):
    __tablename__ = "spectators"
    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_spectators_room_user"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    room = relationship("Room", back_populates="spectators")


class BotGame(Base):
    __tablename__ = "bot_games"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    board = Column(String(9), nullable=False, default=EMPTY_BOARD)
    player_symbol = Column(String(1), nullable=False, default="X")
    current_turn = Column(
        SAEnum(BotActor, values_callable=_enum_values, native_enum=False),
        nullable=True,
        default=BotActor.HUMAN,
    )
    status = Column(
        SAEnum(GameStatus, values_callable=_enum_values, native_enum=False),
        nullable=False,
        default=GameStatus.IN_PROGRESS,
    )
    winner = Column(
        SAEnum(BotActor, values_callable=_enum_values, native_enum=False),
        nullable=True,
    )
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    moves = relationship(
        "BotMove",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="BotMove.move_order",
    )


class BotMove(Base):
    __tablename__ = "bot_moves"
    __table_args__ = (
        UniqueConstraint("game_id", "move_order", name="uq_bot_moves_game_order"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    game_id = Column(String(36), ForeignKey("bot_games.id", ondelete="CASCADE"), nullable=False, index=True)
    player = Column(
        SAEnum(BotActor, values_callable=_enum_values, native_enum=False),
        nullable=False,
    )
    position = Column(Integer, nullable=False)
    symbol = Column(String(1), nullable=False)
    move_order = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    game = relationship("BotGame", back_populates="moves")
