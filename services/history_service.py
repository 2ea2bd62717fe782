"""
Game history service.

Builds paginated lists of a user's finished games plus win/loss/draw
statistics from that user's point of view: bot games, and rooms played
against another user.
"""
from typing import Any, Dict

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from models import BotActor, BotGame, BotMove, GameStatus, Move, Room

RESULT_STATS = {"win": "wins", "loss": "losses", "draw": "draws"}


def get_bot_game_history(user_id: str, db: Session, limit: int = 10, offset: int = 0) -> Dict[str, Any]:
    """
    Return the user's bot games, newest first, with pagination info and
    statistics over every finished game (not only the current page).
    """
    move_counts = (
        db.query(BotMove.game_id, func.count(BotMove.id).label("move_count"))
        .group_by(BotMove.game_id)
        .subquery()
    )

    rows = (
        db.query(BotGame, func.coalesce(move_counts.c.move_count, 0))
        .outerjoin(move_counts, move_counts.c.game_id == BotGame.id)
        .filter(BotGame.user_id == user_id)
        .order_by(BotGame.created_at.desc(), BotGame.id)
        .limit(limit)
        .offset(offset)
        .all()
    )

    total = db.query(BotGame).filter(BotGame.user_id == user_id).count()

    games = [
        {
            "id": game.id,
            "status": game.status,
            "winner": game.winner,
            "move_count": move_count,
            "created_at": game.created_at,
        }
        for game, move_count in rows
    ]

    return {
        "games": games,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(games) < total,
        },
        "stats": get_bot_game_stats(user_id, db),
    }


def get_bot_game_stats(user_id: str, db: Session) -> Dict[str, int]:
    """Wins, losses and draws across the user's finished bot games."""
    stats = {"total": 0, "wins": 0, "losses": 0, "draws": 0}

    finished = (
        db.query(BotGame.winner)
        .filter(BotGame.user_id == user_id, BotGame.status == GameStatus.FINISHED)
        .all()
    )

    for (winner,) in finished:
        stats["total"] += 1
        if winner == BotActor.HUMAN:
            stats["wins"] += 1
        elif winner == BotActor.BOT:
            stats["losses"] += 1
        else:
            stats["draws"] += 1

    return stats


def _room_result(room: Room, user_id: str) -> str:
    if room.winner_id == user_id:
        return "win"
    if room.is_draw:
        return "draw"
    return "loss"


def get_room_history(user_id: str, db: Session, limit: int = 10, offset: int = 0) -> Dict[str, Any]:
    """
    Return the finished rooms the user played in (either seat), newest
    first, each with a result from the user's point of view, plus
    pagination info and win/loss/draw statistics.
    """
    played = or_(Room.player1_id == user_id, Room.player2_id == user_id)
    finished = db.query(Room).filter(played, Room.status == GameStatus.FINISHED)

    move_counts = (
        db.query(Move.room_id, func.count(Move.id).label("move_count"))
        .group_by(Move.room_id)
        .subquery()
    )

    rows = (
        db.query(Room, func.coalesce(move_counts.c.move_count, 0))
        .outerjoin(move_counts, move_counts.c.room_id == Room.id)
        .filter(played, Room.status == GameStatus.FINISHED)
        .order_by(Room.created_at.desc(), Room.id)
        .limit(limit)
        .offset(offset)
        .all()
    )

    games = [
        {
            "id": room.id,
            "code": room.code,
            "player1_id": room.player1_id,
            "player2_id": room.player2_id,
            "winner_id": room.winner_id,
            "is_draw": room.is_draw,
            "move_count": move_count,
            "result": _room_result(room, user_id),
            "created_at": room.created_at,
        }
        for room, move_count in rows
    ]

    stats = {"total": 0, "wins": 0, "losses": 0, "draws": 0}
    for room in finished.all():
        stats["total"] += 1
        stats[RESULT_STATS[_room_result(room, user_id)]] += 1

    return {
        "games": games,
        "pagination": {
            "total": stats["total"],
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(games) < stats["total"],
        },
        "stats": stats,
    }
