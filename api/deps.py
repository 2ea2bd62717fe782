"""
API 共用工具

- 呼叫者身份：由外部的認證層放在 X-User-Id header（這裡不做認證）
- 業務異常 -> HTTPException
- ORM -> response schema
"""
from fastapi import Header, HTTPException

from core.exceptions import TicTacToeException
from models import Room, BotGame
from schemas import RoomResponse, BotGameResponse, BotMoveEntry
from services.board import Symbol


def get_current_user_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """FastAPI dependency：已認證的使用者 id"""
    return x_user_id


def to_http_exception(error: TicTacToeException) -> HTTPException:
    """
    業務異常轉成 HTTP 回應

    detail 帶 code，讓前端可以分辨 VERSION_CONFLICT（可重試）與其他規則錯誤
    """
    return HTTPException(
        status_code=error.status_code,
        detail={
            "code": error.code,
            "message": str(error),
            "retryable": error.retryable,
        },
    )


def room_to_response(room: Room) -> RoomResponse:
    return RoomResponse(
        id=room.id,
        code=room.code,
        status=room.status,
        player1_id=room.player1_id,
        player2_id=room.player2_id,
        current_turn=room.current_turn,
        board=room.board,
        winner_id=room.winner_id,
        is_draw=room.is_draw,
        version=room.version,
        spectators=[s.user_id for s in room.spectators],
        created_at=room.created_at,
        updated_at=room.updated_at,
    )


def bot_game_to_response(game: BotGame) -> BotGameResponse:
    return BotGameResponse(
        id=game.id,
        board=game.board,
        player_symbol=game.player_symbol,
        bot_symbol=Symbol(game.player_symbol).opposite().value,
        current_turn=game.current_turn,
        status=game.status,
        winner=game.winner,
        version=game.version,
        moves=[
            BotMoveEntry(
                player=move.player,
                position=move.position,
                symbol=move.symbol,
                move_order=move.move_order,
            )
            for move in game.moves
        ],
    )
