"""
Replay API Endpoints

依 move_order 重建每一手之後的棋盤，給前端播放對局；以及玩家的對戰歷史
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import ReplayResponse, RoomHistoryResponse
from core.exceptions import TicTacToeException
from services.replay_service import get_room_replay
from services.history_service import get_room_history
from api.deps import get_current_user_id, to_http_exception, room_to_response

router = APIRouter(prefix="/api/replay", tags=["replay"])
logger = logging.getLogger(__name__)


# 注意：必須定義在 /{room_id} 之前，避免路由衝突
@router.get("/user/history", response_model=RoomHistoryResponse)
def get_user_history(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """取得使用者已結束的對戰紀錄（勝 / 負 / 平）與戰績"""
    try:
        return get_room_history(user_id, db, limit=limit, offset=offset)

    except Exception as e:
        logger.error(f"Failed to get game history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get game history")


@router.get("/{room_id}", response_model=ReplayResponse)
def get_replay(
    room_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    取得房間的完整落子紀錄

    返回：
        - room: Room
        - moves: 每一手（含 board_after_move）
        - total_moves: 總手數
    """
    try:
        replay = get_room_replay(room_id, db)
        return ReplayResponse(
            room=room_to_response(replay["room"]),
            moves=replay["moves"],
            total_moves=replay["total_moves"]
        )

    except TicTacToeException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get replay: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get replay")
