"""
Bot API Endpoints

職責：
1. 建立 Bot 遊戲
2. 玩家落子（Bot 在同一個回應內回應）
3. 查詢遊戲與歷史戰績
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    BotGameCreate,
    BotGameResponse,
    BotMoveResponse,
    BotHistoryResponse,
    MoveSubmit,
)
from core.bot_game_manager import BotGameManager
from core.exceptions import TicTacToeException
from services.history_service import get_bot_game_history
from api.deps import get_current_user_id, to_http_exception, bot_game_to_response

router = APIRouter(prefix="/api/bot", tags=["bot"])
logger = logging.getLogger(__name__)


@router.post("/create", response_model=BotGameResponse, status_code=201)
def create_bot_game(
    game_data: BotGameCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    建立 Bot 遊戲

    go_first=False 時 Bot 先手，回應中已經包含 Bot 的第一手
    """
    try:
        game = BotGameManager.create_game(db, user_id, human_goes_first=game_data.go_first)
        return bot_game_to_response(game)

    except Exception as e:
        logger.error(f"Failed to create bot game: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create bot game")


@router.post("/{game_id}/move", response_model=BotMoveResponse)
def make_bot_move(
    game_id: str,
    move_data: MoveSubmit,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    玩家落子，Bot 回應

    返回：
        - game: 更新後的遊戲（含兩手的 move log）
        - bot_move: Bot 下的格子（玩家這手就結束時為 null）
    """
    try:
        game, bot_move = BotGameManager.make_move(
            db,
            game_id,
            user_id,
            move_data.position,
            move_data.version
        )
        return BotMoveResponse(game=bot_game_to_response(game), bot_move=bot_move)

    except TicTacToeException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to make bot move: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to make move")


# 注意：必須定義在 /{game_id} 之前，避免路由衝突
@router.get("/user/games", response_model=BotHistoryResponse)
def get_bot_games(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """取得使用者的 Bot 遊戲歷史與戰績"""
    try:
        return get_bot_game_history(user_id, db, limit=limit, offset=offset)

    except Exception as e:
        logger.error(f"Failed to get bot games: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get games")


@router.get("/{game_id}", response_model=BotGameResponse)
def get_bot_game(
    game_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """取得 Bot 遊戲狀態（只有擁有者可以看）"""
    try:
        game = BotGameManager.get_game(db, game_id, user_id)
        return bot_game_to_response(game)

    except TicTacToeException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get bot game: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get game")
