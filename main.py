from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from database import init_db, get_settings
from api import rooms, game, bot, replay

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database tables ready")
    yield


app = FastAPI(
    title="Tic-Tac-Toe API",
    description="Turn-based tic-tac-toe: player-vs-player rooms with spectators, and games against an unbeatable bot",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 正式環境請改成前端網域
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (rooms.router, game.router, bot.router, replay.router):
    app.include_router(router)


@app.get("/")
def root():
    return {"service": "tic-tac-toe", "docs": "/docs"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
