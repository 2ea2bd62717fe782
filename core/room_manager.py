"""
Room Manager：管理 Room 的完整生命週期

職責：
1. 建立 Room（建立者成為 player1）
2. 加入 Room（入座 player2 或成為觀戰者）
3. 觀戰
4. 離開 Room（刪除 / 棄權 / 釋出座位）
5. 查詢 Room 資訊

原則：
- 單一職責：只管 Room 的成員與生命週期，落子由 GameManager 負責
- 消除特殊情況：所有狀態變更經過 RoomStateMachine
- 所有寫入都是條件式的（見 core.locks），不持有悲觀鎖
"""
from sqlalchemy.orm import Session
from typing import Optional, Tuple
import logging

from models import Room, Seat
from core.state_machine import RoomStateMachine, RoomSnapshot, JoinOutcome, LeaveOutcome
from core.locks import conditional_update, claim_second_seat, add_spectator
from core.exceptions import RoomNotFound, AlreadyAPlayer
from services.naming_service import generate_room_code, normalize_room_code
from services.board import EMPTY_BOARD
from database import transactional, get_settings

logger = logging.getLogger(__name__)

SPECTATOR_ROLE = "spectator"


class RoomManager:
    """Room 生命週期管理器"""

    @staticmethod
    @transactional
    def create_room(db: Session, user_id: str) -> Room:
        """
        建立新房間

        流程：
        1. 生成唯一的房間代碼
        2. 建立 Room（WAITING，player1 先手，version 0）

        參數：
            db: SQLAlchemy Session
            user_id: 建立者（成為 player1）

        返回：
            Room

        注意：
            - 使用 @transactional，自動處理 commit/rollback
            - Room code 碰撞機率極低，但仍會檢查唯一性
        """
        length = get_settings().room_code_length

        # 1. 生成唯一的房間代碼
        code = generate_room_code(length)
        while db.query(Room).filter(Room.code == code).first():
            code = generate_room_code(length)
            logger.warning(f"Room code collision detected, regenerating: {code}")

        # 2. 建立 Room
        room = Room(
            code=code,
            player1_id=user_id,
            current_turn=Seat.PLAYER1,
            board=EMPTY_BOARD,
            version=0,
        )
        db.add(room)
        db.flush()  # 取得 room.id

        logger.info(f"Created room {room.id} with code {code} for user {user_id}")
        return room

    @staticmethod
    @transactional
    def join_room(db: Session, code: str, user_id: str) -> Tuple[Room, JoinOutcome]:
        """
        加入房間

        規則（見 RoomStateMachine.plan_join）：
        1. 已在房內 -> 原封不動回傳（冪等）
        2. player2 空位且 WAITING -> 搶座位
        3. 否則成為觀戰者

        並發：
            兩人同時搶 player2 時，claim_second_seat 只會讓一人成功，
            另一人改為觀戰者（不會兩人都入座，也不會兩人都被拒絕）

        返回：
            (Room, JoinOutcome)

        異常：
            RoomNotFound: Room 不存在（包括在加入途中被房主刪除）
        """
        room = RoomManager.get_room_by_code(db, code)
        room_id = room.id
        snapshot = RoomSnapshot.from_row(room)
        outcome = RoomStateMachine.plan_join(snapshot, user_id)

        if outcome == JoinOutcome.ALREADY_PRESENT:
            logger.info(f"User {user_id} re-joined room {room_id}")
            return room, outcome

        if outcome == JoinOutcome.SEATED:
            if claim_second_seat(db, room_id, user_id):
                db.expire(room)
                logger.info(f"User {user_id} joined room {room_id} as player2")
                return room, JoinOutcome.SEATED
            logger.info(f"User {user_id} lost the race for player2 in room {room_id}")

        # 讀取之後 Room 可能已被房主刪除
        room = RoomManager._require_room(db, room_id)
        add_spectator(db, room_id, user_id)
        db.expire(room)
        logger.info(f"User {user_id} joined room {room_id} as spectator")
        return room, JoinOutcome.SPECTATOR

    @staticmethod
    @transactional
    def spectate_room(db: Session, code: str, user_id: str) -> Room:
        """
        以觀戰者身份加入（冪等）

        異常：
            RoomNotFound: Room 不存在
            AlreadyAPlayer: 呼叫者是這個房間的玩家
        """
        room = RoomManager.get_room_by_code(db, code)
        room_id = room.id
        if RoomSnapshot.from_row(room).seat_of(user_id) is not None:
            raise AlreadyAPlayer("You are already a player in this room")

        room = RoomManager._require_room(db, room_id)
        if add_spectator(db, room_id, user_id):
            logger.info(f"User {user_id} is now spectating room {room_id}")
        db.expire(room)
        return room

    @staticmethod
    @transactional
    def leave_room(db: Session, code: str, user_id: str) -> Tuple[LeaveOutcome, Optional[Room]]:
        """
        離開房間

        規則（見 RoomStateMachine.plan_leave）：
        - 觀戰者：刪除觀戰紀錄
        - player1：刪除整個 Room（move log 與觀戰者一併刪除）
        - player2 在 IN_PROGRESS：棄權，player1 獲勝
        - player2 在 WAITING：釋出座位

        返回：
            (LeaveOutcome, Room 或 None（已刪除 / 沒有改變時回傳原 Room）)

        異常：
            RoomNotFound: Room 不存在
            VersionConflict: 棄權 / 釋出座位時 Room 剛好被其他請求修改
        """
        room = RoomManager.get_room_by_code(db, code)
        snapshot = RoomSnapshot.from_row(room)
        outcome, next_snapshot = RoomStateMachine.plan_leave(snapshot, user_id)

        if outcome == LeaveOutcome.SPECTATOR_LEFT:
            for spectator in list(room.spectators):
                if spectator.user_id == user_id:
                    db.delete(spectator)
            db.flush()
            db.expire(room)
            logger.info(f"Spectator {user_id} left room {room.id}")
            return outcome, room

        if outcome == LeaveOutcome.ROOM_DELETED:
            # cascade 會一併刪除 moves 與 spectators
            db.delete(room)
            db.flush()
            logger.info(f"Room {snapshot.id} ({snapshot.code}) deleted because creator {user_id} left")
            return outcome, None

        if next_snapshot is not None:
            conditional_update(db, Room, room.id, snapshot.version, next_snapshot.to_columns())
            db.expire(room)
            if outcome == LeaveOutcome.FORFEIT:
                logger.info(f"Player2 {user_id} forfeited room {room.id}; {snapshot.player1_id} wins")
            else:
                logger.info(f"Player2 {user_id} left waiting room {room.id}")

        return outcome, room

    @staticmethod
    def get_room_by_code(db: Session, code: str) -> Room:
        """
        透過房間代碼取得 Room（不分大小寫）

        異常：
            RoomNotFound: Room 不存在
        """
        room = db.query(Room).filter(Room.code == normalize_room_code(code)).first()
        if not room:
            raise RoomNotFound(f"with code {code}")
        return room

    @staticmethod
    def get_room_by_id(db: Session, room_id: str) -> Room:
        """
        透過 id 取得 Room

        異常：
            RoomNotFound: Room 不存在
        """
        room = db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise RoomNotFound(room_id)
        return room

    @staticmethod
    def _require_room(db: Session, room_id: str) -> Room:
        """寫入前重新讀取 Room（不用 identity map 裡的舊資料），已被刪除就拋出 RoomNotFound"""
        db.expire_all()
        return RoomManager.get_room_by_id(db, room_id)

    @staticmethod
    def get_role(room: Room, user_id: str) -> str:
        """呼叫者在房內的角色：player1 / player2 / spectator"""
        seat = RoomSnapshot.from_row(room).seat_of(user_id)
        return seat.value if seat else SPECTATOR_ROLE
