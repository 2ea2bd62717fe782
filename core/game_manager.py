"""
Game Manager：玩家對玩家的落子

職責：
1. 落子（驗證 -> 計算 -> 條件式寫入 -> 寫入 move log）
2. 查詢遊戲狀態（給短輪詢用）

並發設計：
- 讀取 Room 時不上鎖，計算完才用 version 做 compare-and-swap
- 同一個 version 上的 N 個落子請求，只有一個會 commit
- CAS 失敗時重新讀取最新的 Room 再驗證一次：
  如果現在違反了業務規則（例如 WrongTurn），回報那個規則；否則回報 VersionConflict
"""
from sqlalchemy.orm import Session
from typing import Optional
import logging

from models import Room, Move
from core.state_machine import RoomStateMachine, RoomSnapshot
from core.locks import conditional_update
from core.exceptions import RoomNotFound, VersionConflict
from core.room_manager import RoomManager
from database import transactional

logger = logging.getLogger(__name__)


class GameManager:
    """Room 落子管理器"""

    @staticmethod
    @transactional
    def make_move(
        db: Session,
        room_id: str,
        user_id: str,
        position: int,
        expected_version: Optional[int] = None,
    ) -> Room:
        """
        落子（核心操作）

        流程：
        1. 讀取 Room（不上鎖）
        2. RoomStateMachine 驗證並計算下一個狀態
        3. 條件式寫入（version 沒變才寫）
        4. 寫入 move log

        參數：
            db: SQLAlchemy Session
            room_id: Room id
            user_id: 呼叫者
            position: 格子 (0-8)
            expected_version: 客戶端看到的 version（可省略）

        返回：
            更新後的 Room

        異常：
            RoomNotFound, NotStarted, AlreadyFinished, VersionConflict,
            NotAParticipant, WrongTurn, IllegalMove
        """
        # 1. 讀取 Room
        room = RoomManager.get_room_by_id(db, room_id)
        snapshot = RoomSnapshot.from_row(room)

        # 2. 驗證並計算
        transition = RoomStateMachine.apply_move(snapshot, user_id, position, expected_version)

        # 3. 條件式寫入
        try:
            conditional_update(db, Room, room.id, snapshot.version, transition.room.to_columns())
        except VersionConflict:
            GameManager._revalidate(db, room_id, user_id, position, expected_version)
            raise

        # 4. 寫入 move log
        for record in transition.moves:
            db.add(Move(
                room_id=room.id,
                player_id=record.actor,
                position=record.cell,
                symbol=record.symbol.value,
                move_order=record.move_order,
            ))
        db.flush()
        db.expire(room)

        logger.info(
            f"Move accepted in room {room_id}: user {user_id} -> cell {position} "
            f"(version {snapshot.version} -> {transition.room.version}, status={transition.room.status.value})"
        )
        return room

    @staticmethod
    def _revalidate(
        db: Session,
        room_id: str,
        user_id: str,
        position: int,
        expected_version: Optional[int],
    ) -> None:
        """
        CAS 失敗後，用最新的 Room 再驗證一次

        如果最新狀態違反了某個規則，就拋出那個規則的異常；
        都通過的話直接返回，由呼叫者拋出 VersionConflict
        """
        db.expire_all()
        current = db.query(Room).filter(Room.id == room_id).first()
        if not current:
            raise RoomNotFound(room_id)
        RoomStateMachine.validate_move(RoomSnapshot.from_row(current), user_id, position, expected_version)

    @staticmethod
    def get_state(db: Session, room_id: str, user_id: str) -> dict:
        """
        取得遊戲狀態（短輪詢用）

        返回：
            - room: Room
            - role: player1 / player2 / spectator
            - last_move: 最後一筆 Move 或 None
        """
        room = RoomManager.get_room_by_id(db, room_id)
        return {
            "room": room,
            "role": RoomManager.get_role(room, user_id),
            "last_move": room.moves[-1] if room.moves else None,
        }

    @staticmethod
    def is_my_turn(room: Room, user_id: str) -> bool:
        seat = RoomSnapshot.from_row(room).seat_of(user_id)
        return seat is not None and room.current_turn == seat
