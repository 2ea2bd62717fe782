"""
BotGame Manager：管理玩家對 Bot 的遊戲

職責：
1. 建立遊戲（Bot 先手時，建立前就先下好第一手）
2. 落子（玩家一手 + Bot 回應一手，同一個 transaction）
3. 查詢遊戲（只有擁有者可以看）

Bot 永遠不會在回應送出後才非同步落子：玩家的落子與 Bot 的回應一起回傳
"""
from sqlalchemy.orm import Session
from typing import Optional, Tuple
import logging

from models import BotGame, BotMove, BotActor, GameStatus
from core.state_machine import BotGameStateMachine, BotGameSnapshot
from core.locks import conditional_update
from core.exceptions import GameNotFound, NotYourGame, VersionConflict
from database import transactional

logger = logging.getLogger(__name__)


class BotGameManager:
    """BotGame 生命週期管理器"""

    @staticmethod
    @transactional
    def create_game(db: Session, user_id: str, human_goes_first: bool = True) -> BotGame:
        """
        建立新的 Bot 遊戲

        規則：
        - 玩家先手：玩家用 X，空棋盤
        - Bot 先手：玩家用 O，Bot 的第一手（中央）記為 move 1
        - 不論誰先手，建立後都輪到玩家，version 為 0（建立不算落子）

        參數：
            db: SQLAlchemy Session
            user_id: 擁有者
            human_goes_first: 玩家是否先手

        返回：
            BotGame
        """
        board, player_symbol, opening_moves = BotGameStateMachine.opening(human_goes_first)

        game = BotGame(
            user_id=user_id,
            board=board.serialize(),
            player_symbol=player_symbol.value,
            current_turn=BotActor.HUMAN,
            status=GameStatus.IN_PROGRESS,
            version=0,
        )
        for record in opening_moves:
            game.moves.append(BotMove(
                player=record.actor,
                position=record.cell,
                symbol=record.symbol.value,
                move_order=record.move_order,
            ))
        db.add(game)
        db.flush()

        logger.info(
            f"Created bot game {game.id} for user {user_id} "
            f"(player={player_symbol.value}, bot_first={not human_goes_first})"
        )
        return game

    @staticmethod
    @transactional
    def make_move(
        db: Session,
        game_id: str,
        user_id: str,
        position: int,
        expected_version: Optional[int] = None,
    ) -> Tuple[BotGame, Optional[int]]:
        """
        玩家落子，Bot 接著回應

        流程：
        1. 讀取 BotGame（不上鎖）
        2. BotGameStateMachine 驗證、套用玩家落子、計算 Bot 回應
        3. 條件式寫入（version 沒變才寫）
        4. 寫入一或兩筆 move log

        返回：
            (更新後的 BotGame, Bot 的落子格子或 None（玩家這手就結束了）)

        異常：
            GameNotFound, AlreadyFinished, VersionConflict, NotYourGame, WrongTurn, IllegalMove
        """
        # 1. 讀取 BotGame
        game = BotGameManager._load(db, game_id)
        snapshot = BotGameSnapshot.from_row(game)

        # 2. 驗證並計算（含 Bot 回應）
        transition = BotGameStateMachine.apply_move(snapshot, user_id, position, expected_version)

        # 3. 條件式寫入
        try:
            conditional_update(db, BotGame, game.id, snapshot.version, transition.game.to_columns())
        except VersionConflict:
            BotGameManager._revalidate(db, game_id, user_id, position, expected_version)
            raise

        # 4. 寫入 move log
        for record in transition.moves:
            db.add(BotMove(
                game_id=game.id,
                player=record.actor,
                position=record.cell,
                symbol=record.symbol.value,
                move_order=record.move_order,
            ))
        db.flush()
        db.expire(game)

        logger.info(
            f"Bot game {game_id}: player -> {position}, bot -> {transition.bot_move} "
            f"(version {snapshot.version} -> {transition.game.version}, status={transition.game.status.value})"
        )
        return game, transition.bot_move

    @staticmethod
    def _revalidate(
        db: Session,
        game_id: str,
        user_id: str,
        position: int,
        expected_version: Optional[int],
    ) -> None:
        """CAS 失敗後用最新的 BotGame 再驗證一次（見 GameManager._revalidate）"""
        db.expire_all()
        current = db.query(BotGame).filter(BotGame.id == game_id).first()
        if not current:
            raise GameNotFound(game_id)
        BotGameStateMachine.validate_move(BotGameSnapshot.from_row(current), user_id, position, expected_version)

    @staticmethod
    def _load(db: Session, game_id: str) -> BotGame:
        game = db.query(BotGame).filter(BotGame.id == game_id).first()
        if not game:
            raise GameNotFound(game_id)
        return game

    @staticmethod
    def get_game(db: Session, game_id: str, user_id: str) -> BotGame:
        """
        取得 BotGame（只有擁有者可以看）

        異常：
            GameNotFound: 遊戲不存在
            NotYourGame: 呼叫者不是擁有者
        """
        game = BotGameManager._load(db, game_id)
        if game.user_id != user_id:
            raise NotYourGame("Access denied")
        return game
