"""
並發控制工具

樂觀鎖（Optimistic Locking）：讀取 -> 計算 -> 條件式寫入

不在計算期間持有任何鎖：
    UPDATE ... SET ..., version = :new WHERE id = :id AND version = :expected
影響 0 筆就代表讀取之後已經有人寫入（或資料已被刪除），整個 transaction 作廢
"""
import logging
from typing import Type

from sqlalchemy.orm import Session

from models import Room, Spectator, GameStatus
from core.exceptions import VersionConflict

logger = logging.getLogger(__name__)


def conditional_update(db: Session, model: Type, row_id: str, expected_version: int, values: dict) -> None:
    """
    Compare-and-swap：只有在 version 沒變時才寫入

    參數：
        db: SQLAlchemy Session
        model: Room 或 BotGame
        row_id: 資料列 id
        expected_version: 讀取時的 version
        values: 要寫入的欄位（必須包含新的 version）

    異常：
        VersionConflict: version 已經改變，或資料列已不存在

    注意：
        - 必須在 transaction 內使用（搭配 @transactional）
        - 之後存取已載入的 ORM 物件前要 expire，才會讀到新值
    """
    updated = db.query(model).filter(
        model.id == row_id,
        model.version == expected_version
    ).update(values, synchronize_session=False)

    if updated == 0:
        logger.warning(
            f"Version conflict on {model.__tablename__} {row_id} (expected version {expected_version})"
        )
        raise VersionConflict(expected_version)


def claim_second_seat(db: Session, room_id: str, user_id: str) -> bool:
    """
    原子地搶 player2 座位

    條件：player2 還是空的，而且 Room 還在 WAITING
    兩個人同時搶時，只有一個 UPDATE 會影響到資料列

    返回：
        True 如果搶到座位，False 如果已經被別人搶走
    """
    updated = db.query(Room).filter(
        Room.id == room_id,
        Room.player2_id.is_(None),
        Room.status == GameStatus.WAITING
    ).update(
        {"player2_id": user_id, "status": GameStatus.IN_PROGRESS},
        synchronize_session=False
    )
    return updated == 1


def add_spectator(db: Session, room_id: str, user_id: str) -> bool:
    """
    新增觀戰者（冪等）

    (room_id, user_id) 有 unique constraint 作為最後防線

    返回：
        True 如果新增了一筆，False 如果本來就是觀戰者
    """
    existing = db.query(Spectator).filter(
        Spectator.room_id == room_id,
        Spectator.user_id == user_id
    ).first()
    if existing:
        return False

    db.add(Spectator(room_id=room_id, user_id=user_id))
    db.flush()
    return True
