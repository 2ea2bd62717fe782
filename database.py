from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from pydantic_settings import BaseSettings
from functools import lru_cache, wraps
import logging

from core.exceptions import TicTacToeException

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """環境變數 / .env 設定"""
    database_url: str = "sqlite:///./tictactoe.db"
    room_code_length: int = 6
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


def make_engine(database_url: str):
    """
    依 URL 建立 Engine

    SQLite：
    - check_same_thread=False：FastAPI 會在 threadpool 裡使用 session
    - timeout=30：條件式寫入排隊等待 write lock，而不是立刻回報 database is locked
    - 保留 pysqlite 預設的 transaction 行為（第一個 UPDATE/INSERT 才 BEGIN），
      讀取不會在 transaction 內佔住 shared lock，寫入之間不會互相 deadlock
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_pre_ping=True,
    )


engine = make_engine(get_settings().database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind=None) -> None:
    """建立所有資料表（已存在的表不動）"""
    import models  # noqa: F401  註冊 Room / Move / Spectator / BotGame / BotMove

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """FastAPI dependency：每個請求一個 Session，結束時關閉"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _session_from(args, kwargs) -> Session:
    if args and isinstance(args[0], Session):
        return args[0]
    if isinstance(kwargs.get("db"), Session):
        return kwargs["db"]
    raise ValueError("@transactional needs 'db: Session' as the first argument")


def transactional(func):
    """
    把一個 Manager 操作包成單一 transaction

    - 正常返回：commit
    - 業務規則異常（TicTacToeException，例如 VersionConflict / WrongTurn）：
      rollback 後原樣拋出，只記 INFO，這是預期中的結果
    - 其他異常：rollback，記 ERROR（含 stack trace）後拋出

    被包的函式不應該自己 commit；flush 可以（例如需要拿到新的 id）
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        db = _session_from(args, kwargs)

        try:
            result = func(*args, **kwargs)
            db.commit()
        except TicTacToeException as e:
            db.rollback()
            logger.info(f"{func.__name__} rejected: [{e.code}] {e}")
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"{func.__name__} failed, transaction rolled back: {e}", exc_info=True)
            raise

        return result

    return wrapper
