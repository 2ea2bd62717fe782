"""
Room API Endpoints

職責：
1. 建立房間
2. 查詢房間
3. 加入 / 觀戰 / 離開房間
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import RoomResponse, JoinResponse, LeaveResponse, MessageResponse
from core.room_manager import RoomManager
from core.state_machine import JoinOutcome, LeaveOutcome
from core.exceptions import TicTacToeException
from api.deps import get_current_user_id, to_http_exception, room_to_response

router = APIRouter(prefix="/api/rooms", tags=["rooms"])
logger = logging.getLogger(__name__)

LEAVE_MESSAGES = {
    LeaveOutcome.NOT_PRESENT: "You are not in this room",
    LeaveOutcome.SPECTATOR_LEFT: "Left the room",
    LeaveOutcome.ROOM_DELETED: "Room deleted (creator left)",
    LeaveOutcome.FORFEIT: "You forfeited. Player 1 wins.",
    LeaveOutcome.SEAT_RELEASED: "Left the room",
    LeaveOutcome.LEFT_FINISHED: "Left the room",
}


@router.post("", response_model=RoomResponse, status_code=201)
def create_room(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    建立房間

    呼叫者成為 player1（X），房間狀態為 WAITING
    """
    try:
        room = RoomManager.create_room(db, user_id)
        return room_to_response(room)

    except Exception as e:
        logger.error(f"Failed to create room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create room")


@router.get("/{code}", response_model=RoomResponse)
def get_room(
    code: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """透過房間代碼查詢房間"""
    try:
        room = RoomManager.get_room_by_code(db, code)
        return room_to_response(room)

    except TicTacToeException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get room")


@router.post("/{code}/join", response_model=JoinResponse)
def join_room(
    code: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    加入房間

    流程：
    1. 已經在房內 -> 原樣回傳（可以重新整理頁面後再 join）
    2. player2 空位且 WAITING -> 成為 player2，遊戲開始
    3. 其他 -> 成為觀戰者
    """
    try:
        room, outcome = RoomManager.join_room(db, code, user_id)
        response = room_to_response(room)
        is_spectator = user_id not in (response.player1_id, response.player2_id)

        return JoinResponse(
            room=response,
            outcome=outcome.value,
            is_spectator=is_spectator
        )

    except TicTacToeException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to join room: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to join room")


@router.post("/{code}/spectate", response_model=MessageResponse)
def spectate_room(
    code: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """以觀戰者身份加入房間（玩家本人不能觀戰自己的房間）"""
    try:
        RoomManager.spectate_room(db, code, user_id)
        return MessageResponse(message="Joined as spectator")

    except TicTacToeException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to spectate room: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to join as spectator")


@router.post("/{code}/leave", response_model=LeaveResponse)
def leave_room(
    code: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    離開房間

    - 房主離開：整個房間刪除
    - player2 在遊戲中離開：棄權，player1 獲勝
    - 觀戰者離開：只移除觀戰紀錄
    """
    try:
        outcome, room = RoomManager.leave_room(db, code, user_id)
        return LeaveResponse(
            outcome=outcome.value,
            message=LEAVE_MESSAGES[outcome],
            room=room_to_response(room) if room is not None else None
        )

    except TicTacToeException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to leave room: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to leave room")
