"""
狀態機：集中管理所有狀態轉換

純函式：輸入目前的 snapshot，輸出下一個 snapshot + 要寫入的 move log
不碰資料庫，持久化與樂觀鎖由 RoomManager / BotGameManager 負責

Room（玩家對玩家）：
    WAITING --join--> IN_PROGRESS --move/forfeit--> FINISHED
    （player2 在還沒落子前離開時，會回到 WAITING）

BotGame（玩家對 Bot）：
    IN_PROGRESS --move--> FINISHED
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union

from models import GameStatus, Seat, BotActor
from core.exceptions import (
    NotStarted,
    AlreadyFinished,
    VersionConflict,
    NotAParticipant,
    NotYourGame,
    WrongTurn,
    IllegalMove,
)
from services.board import Board, Symbol, is_legal, apply_move
from services.outcome_service import evaluate, validate_board
from services.search_service import find_best_move, NO_MOVE

SEAT_SYMBOLS = {
    Seat.PLAYER1: Symbol.X,
    Seat.PLAYER2: Symbol.O,
}


@dataclass(frozen=True)
class MoveRecord:
    """一筆要寫入 move log 的落子；actor 是 user id（Room）或 BotActor（BotGame）"""
    move_order: int
    actor: Union[str, BotActor]
    cell: int
    symbol: Symbol


@dataclass(frozen=True)
class RoomSnapshot:
    id: str
    code: str
    status: GameStatus
    player1_id: str
    player2_id: Optional[str]
    current_turn: Optional[Seat]
    board: Board
    winner_id: Optional[str]
    is_draw: bool
    version: int
    move_count: int = 0
    spectator_ids: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_row(cls, room) -> "RoomSnapshot":
        return cls(
            id=room.id,
            code=room.code,
            status=GameStatus(room.status),
            player1_id=room.player1_id,
            player2_id=room.player2_id,
            current_turn=Seat(room.current_turn) if room.current_turn else None,
            board=validate_board(room.board),
            winner_id=room.winner_id,
            is_draw=room.is_draw,
            version=room.version,
            move_count=len(room.moves),
            spectator_ids=frozenset(s.user_id for s in room.spectators),
        )

    def to_columns(self) -> dict:
        """conditional_update 要寫入的欄位"""
        return {
            "status": self.status,
            "player2_id": self.player2_id,
            "current_turn": self.current_turn,
            "board": self.board.serialize(),
            "winner_id": self.winner_id,
            "is_draw": self.is_draw,
            "version": self.version,
        }

    def seat_of(self, user_id: str) -> Optional[Seat]:
        if user_id == self.player1_id:
            return Seat.PLAYER1
        if self.player2_id is not None and user_id == self.player2_id:
            return Seat.PLAYER2
        return None


@dataclass(frozen=True)
class BotGameSnapshot:
    id: str
    user_id: str
    board: Board
    player_symbol: Symbol
    current_turn: Optional[BotActor]
    status: GameStatus
    winner: Optional[BotActor]
    version: int
    move_count: int = 0

    @property
    def bot_symbol(self) -> Symbol:
        return self.player_symbol.opposite()

    @classmethod
    def from_row(cls, game) -> "BotGameSnapshot":
        return cls(
            id=game.id,
            user_id=game.user_id,
            board=validate_board(game.board),
            player_symbol=Symbol(game.player_symbol),
            current_turn=BotActor(game.current_turn) if game.current_turn else None,
            status=GameStatus(game.status),
            winner=BotActor(game.winner) if game.winner else None,
            version=game.version,
            move_count=len(game.moves),
        )

    def to_columns(self) -> dict:
        return {
            "board": self.board.serialize(),
            "current_turn": self.current_turn,
            "status": self.status,
            "winner": self.winner,
            "version": self.version,
        }


@dataclass(frozen=True)
class RoomTransition:
    room: RoomSnapshot
    moves: Tuple[MoveRecord, ...] = ()


@dataclass(frozen=True)
class BotGameTransition:
    game: BotGameSnapshot
    moves: Tuple[MoveRecord, ...] = ()

    @property
    def bot_move(self) -> Optional[int]:
        for record in self.moves:
            if record.actor == BotActor.BOT:
                return record.cell
        return None


class JoinOutcome(str, Enum):
    ALREADY_PRESENT = "already_present"
    SEATED = "seated"
    SPECTATOR = "spectator"


class LeaveOutcome(str, Enum):
    NOT_PRESENT = "not_present"
    SPECTATOR_LEFT = "spectator_left"
    ROOM_DELETED = "room_deleted"
    FORFEIT = "forfeit"
    SEAT_RELEASED = "seat_released"
    LEFT_FINISHED = "left_finished"


class RoomStateMachine:
    """玩家對玩家的狀態轉換"""

    @staticmethod
    def plan_join(room: RoomSnapshot, user_id: str) -> JoinOutcome:
        """
        決定 join 的結果

        規則：
        1. 已經是 player1 / player2 / 觀戰者 -> 不做任何事（冪等）
        2. player2 空位且 WAITING -> 入座成為 player2
        3. 其他 -> 成為觀戰者
        """
        if room.seat_of(user_id) is not None or user_id in room.spectator_ids:
            return JoinOutcome.ALREADY_PRESENT
        if room.player2_id is None and room.status == GameStatus.WAITING:
            return JoinOutcome.SEATED
        return JoinOutcome.SPECTATOR

    @staticmethod
    def seat_player2(room: RoomSnapshot, user_id: str) -> RoomSnapshot:
        return replace(room, player2_id=user_id, status=GameStatus.IN_PROGRESS)

    @staticmethod
    def validate_move(
        room: RoomSnapshot,
        user_id: str,
        cell: int,
        expected_version: Optional[int] = None,
    ) -> Seat:
        """
        依序檢查落子是否合法，回傳呼叫者的座位

        檢查順序（第一個失敗的就是回報的錯誤）：
        1. NotStarted
        2. AlreadyFinished
        3. VersionConflict（有帶 expected_version 時）
        4. NotAParticipant
        5. WrongTurn
        6. IllegalMove
        """
        if room.status == GameStatus.WAITING:
            raise NotStarted("Game has not started yet")
        if room.status == GameStatus.FINISHED:
            raise AlreadyFinished("Game is already finished")
        if expected_version is not None and expected_version != room.version:
            raise VersionConflict(expected_version, room.version)

        seat = room.seat_of(user_id)
        if seat is None:
            raise NotAParticipant(f"User {user_id} is not a player in room {room.code}")
        if room.current_turn != seat:
            raise WrongTurn(f"It is not {seat.value}'s turn")
        if not is_legal(room.board, cell):
            raise IllegalMove(cell)
        return seat

    @staticmethod
    def apply_move(
        room: RoomSnapshot,
        user_id: str,
        cell: int,
        expected_version: Optional[int] = None,
    ) -> RoomTransition:
        """
        驗證並套用一手棋

        返回：
            RoomTransition（version + 1，加上一筆 MoveRecord）
        """
        seat = RoomStateMachine.validate_move(room, user_id, cell, expected_version)
        symbol = SEAT_SYMBOLS[seat]

        board = apply_move(room.board, cell, symbol)
        record = MoveRecord(
            move_order=room.move_count + 1,
            actor=user_id,
            cell=cell,
            symbol=symbol,
        )
        outcome = evaluate(board)

        if outcome.winner is not None:
            next_room = replace(
                room,
                board=board,
                status=GameStatus.FINISHED,
                winner_id=user_id,
                current_turn=None,
            )
        elif outcome.is_draw:
            next_room = replace(
                room,
                board=board,
                status=GameStatus.FINISHED,
                is_draw=True,
                current_turn=None,
            )
        else:
            next_room = replace(room, board=board, current_turn=seat.other())

        next_room = replace(
            next_room,
            version=room.version + 1,
            move_count=room.move_count + 1,
        )
        return RoomTransition(room=next_room, moves=(record,))

    @staticmethod
    def plan_leave(room: RoomSnapshot, user_id: str) -> Tuple[LeaveOutcome, Optional[RoomSnapshot]]:
        """
        決定 leave 的結果

        規則：
        - 觀戰者：移除觀戰紀錄，Room 本身不變
        - player1（房主）：整個 Room 連同 move log 刪除（不論狀態）
        - player2 在 IN_PROGRESS 離開：棄權，player1 獲勝
        - player2 在其他狀態離開：釋出座位，狀態回到 WAITING
          （FINISHED 的 Room 不做任何改變，保留對局紀錄）

        返回：
            (LeaveOutcome, 新的 snapshot 或 None)
        """
        seat = room.seat_of(user_id)

        if seat is None:
            if user_id in room.spectator_ids:
                return LeaveOutcome.SPECTATOR_LEFT, None
            return LeaveOutcome.NOT_PRESENT, None

        if seat == Seat.PLAYER1:
            return LeaveOutcome.ROOM_DELETED, None

        if room.status == GameStatus.IN_PROGRESS:
            return LeaveOutcome.FORFEIT, replace(
                room,
                status=GameStatus.FINISHED,
                winner_id=room.player1_id,
                player2_id=None,
                current_turn=None,
                version=room.version + 1,
            )

        if room.status == GameStatus.FINISHED:
            return LeaveOutcome.LEFT_FINISHED, None

        return LeaveOutcome.SEAT_RELEASED, replace(
            room,
            player2_id=None,
            status=GameStatus.WAITING,
            version=room.version + 1,
        )


class BotGameStateMachine:
    """玩家對 Bot 的狀態轉換"""

    @staticmethod
    def opening(human_goes_first: bool) -> Tuple[Board, Symbol, Tuple[MoveRecord, ...]]:
        """
        建立新遊戲時的初始棋盤

        規則：
        - 玩家先手：玩家用 X，空棋盤
        - Bot 先手：玩家用 O，Bot 立刻下第一手（空棋盤 -> 中央），記為 move 1

        返回：
            (board, player_symbol, 初始 move log)
        """
        board = Board.empty()
        if human_goes_first:
            return board, Symbol.X, ()

        player_symbol = Symbol.O
        bot_symbol = player_symbol.opposite()
        cell = find_best_move(board, bot_symbol, player_symbol)
        assert cell != NO_MOVE, "search returned no move on an empty board"

        record = MoveRecord(move_order=1, actor=BotActor.BOT, cell=cell, symbol=bot_symbol)
        return apply_move(board, cell, bot_symbol), player_symbol, (record,)

    @staticmethod
    def validate_move(
        game: BotGameSnapshot,
        user_id: str,
        cell: int,
        expected_version: Optional[int] = None,
    ) -> None:
        """
        檢查順序與 RoomStateMachine.validate_move 相同，
        但以擁有者檢查（NotYourGame）取代玩家檢查
        """
        if game.status == GameStatus.WAITING:
            raise NotStarted("Game has not started yet")
        if game.status == GameStatus.FINISHED:
            raise AlreadyFinished("Game is already finished")
        if expected_version is not None and expected_version != game.version:
            raise VersionConflict(expected_version, game.version)
        if user_id != game.user_id:
            raise NotYourGame(f"Game {game.id} does not belong to user {user_id}")
        if game.current_turn != BotActor.HUMAN:
            raise WrongTurn("It is not your turn")
        if not is_legal(game.board, cell):
            raise IllegalMove(cell)

    @staticmethod
    def apply_move(
        game: BotGameSnapshot,
        user_id: str,
        cell: int,
        expected_version: Optional[int] = None,
    ) -> BotGameTransition:
        """
        套用玩家的一手，如果還沒結束就接著讓 Bot 下一手

        一次呼叫可能產生一或兩筆 MoveRecord；Bot 的回應跟玩家的落子在同一個 transition 內
        """
        BotGameStateMachine.validate_move(game, user_id, cell, expected_version)

        player_symbol = game.player_symbol
        bot_symbol = game.bot_symbol

        board = apply_move(game.board, cell, player_symbol)
        records = [MoveRecord(
            move_order=game.move_count + 1,
            actor=BotActor.HUMAN,
            cell=cell,
            symbol=player_symbol,
        )]
        outcome = evaluate(board)

        if not outcome.is_over:
            bot_cell = find_best_move(board, bot_symbol, player_symbol)
            assert bot_cell != NO_MOVE, f"search returned no move on non-terminal board {board}"
            board = apply_move(board, bot_cell, bot_symbol)
            records.append(MoveRecord(
                move_order=game.move_count + 2,
                actor=BotActor.BOT,
                cell=bot_cell,
                symbol=bot_symbol,
            ))
            outcome = evaluate(board)

        winner = None
        if outcome.winner == player_symbol:
            winner = BotActor.HUMAN
        elif outcome.winner == bot_symbol:
            winner = BotActor.BOT

        next_game = replace(
            game,
            board=board,
            current_turn=None if outcome.is_over else BotActor.HUMAN,
            status=GameStatus.FINISHED if outcome.is_over else GameStatus.IN_PROGRESS,
            winner=winner,
            version=game.version + 1,
            move_count=game.move_count + len(records),
        )
        return BotGameTransition(game=next_game, moves=tuple(records))
