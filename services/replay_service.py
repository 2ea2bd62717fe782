"""
重播服務：從 move log 重建每一手之後的棋盤

move_order 從 1 開始、連續、嚴格遞增，
所以把格子依序放到空棋盤上，就能還原每一手之後的狀態
"""
from typing import Any, Dict, Iterable, List

from sqlalchemy.orm import Session

from models import Move, Room
from core.exceptions import RoomNotFound
from services.board import Board, Symbol, apply_move


def build_frames(moves: Iterable) -> List[Dict[str, Any]]:
    """
    依 move_order 重播落子

    參數：
        moves: 有 move_order / position / symbol 屬性的物件（Move 或 BotMove）

    返回：
        每一手一筆：move_order, player, position, symbol, board_after_move, created_at

    異常：
        ValueError: move_order 不是從 1 開始的連續序號
    """
    board = Board.empty()
    frames: List[Dict[str, Any]] = []

    for expected_order, move in enumerate(sorted(moves, key=lambda m: m.move_order), start=1):
        if move.move_order != expected_order:
            raise ValueError(f"Move log has a gap: expected order {expected_order}, got {move.move_order}")

        board = apply_move(board, move.position, Symbol(move.symbol))
        frames.append({
            "move_order": move.move_order,
            "player": getattr(move, "player_id", None) or getattr(move, "player", None),
            "position": move.position,
            "symbol": move.symbol,
            "board_after_move": board.serialize(),
            "created_at": move.created_at,
        })

    return frames


def get_room_replay(room_id: str, db: Session) -> Dict[str, Any]:
    """
    取得 Room 的完整重播資料

    異常：
        RoomNotFound: Room 不存在
    """
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise RoomNotFound(room_id)
    moves = db.query(Move).filter(Move.room_id == room_id).order_by(Move.move_order).all()

    return {
        "room": room,
        "moves": build_frames(moves),
        "total_moves": len(moves),
    }
