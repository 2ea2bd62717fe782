"""
Game API Endpoints - 短輪詢版

重點：
1. 落子使用樂觀鎖（version），衝突回 409，前端重新讀取後可再送
2. 所有業務邏輯集中在 GameManager
3. 前端靠 /state 或 /status 獲取更新
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import MoveSubmit, RoomResponse, GameStateResponse, GameStatusResponse, LastMove
from core.game_manager import GameManager
from core.room_manager import RoomManager
from core.exceptions import TicTacToeException
from api.deps import get_current_user_id, to_http_exception, room_to_response

router = APIRouter(prefix="/api/game", tags=["game"])
logger = logging.getLogger(__name__)


@router.post("/{room_id}/move", response_model=RoomResponse)
def make_move(
    room_id: str,
    move_data: MoveSubmit,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    落子（核心！）

    並發安全：
    - 同一個 version 上同時送出的落子，只有一個會成功
    - 其他的會收到 409 VERSION_CONFLICT（或最新狀態下違反的規則，例如 NOT_YOUR_TURN）

    參數：
        room_id: Room id
        move_data: position (0-8)，version（可省略）

    返回：
        更新後的 Room
    """
    try:
        room = GameManager.make_move(
            db,
            room_id,
            user_id,
            move_data.position,
            move_data.version
        )
        return room_to_response(room)

    except TicTacToeException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to make move: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to make move")


@router.get("/{room_id}/state", response_model=GameStateResponse)
def get_game_state(
    room_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    取得完整遊戲狀態（短輪詢用）

    返回：
        - room: Room
        - role: player1 / player2 / spectator
        - last_move: 最後一手
    """
    try:
        state = GameManager.get_state(db, room_id, user_id)
        last_move = state["last_move"]

        return GameStateResponse(
            room=room_to_response(state["room"]),
            role=state["role"],
            last_move=LastMove(
                position=last_move.position,
                symbol=last_move.symbol,
                move_order=last_move.move_order
            ) if last_move else None
        )

    except TicTacToeException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get game state: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get game state")


@router.get("/{room_id}/status", response_model=GameStatusResponse)
def get_game_status(
    room_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """快速狀態檢查：輪到誰、有沒有贏家"""
    try:
        room = RoomManager.get_room_by_id(db, room_id)

        return GameStatusResponse(
            status=room.status,
            current_turn=room.current_turn,
            is_my_turn=GameManager.is_my_turn(room, user_id),
            has_winner=room.winner_id is not None,
            is_draw=room.is_draw,
            version=room.version,
            updated_at=room.updated_at
        )

    except TicTacToeException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get status: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get status")
