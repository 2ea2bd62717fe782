from types import SimpleNamespace

import pytest

from core.game_manager import GameManager
from core.room_manager import RoomManager
from core.exceptions import RoomNotFound
from services.replay_service import build_frames, get_room_replay
from services.history_service import get_room_history
from tests.conftest import ALICE, BOB, CAROL


def move(order, position, symbol, player="someone"):
    return SimpleNamespace(move_order=order, position=position, symbol=symbol, player_id=player, created_at=None)


def test_frames_follow_move_order():
    # stored out of order on purpose
    frames = build_frames([move(2, 0, "O", BOB), move(1, 4, "X", ALICE), move(3, 8, "X", ALICE)])

    assert [f["board_after_move"] for f in frames] == ["----X----", "O---X----", "O---X---X"]
    assert [f["player"] for f in frames] == [ALICE, BOB, ALICE]


def test_gap_in_move_log_is_rejected():
    with pytest.raises(ValueError):
        build_frames([move(1, 4, "X"), move(3, 0, "X")])


def test_empty_log():
    assert build_frames([]) == []


def test_room_replay(db, started_room):
    for user, cell in [(ALICE, 4), (BOB, 0), (ALICE, 8)]:
        GameManager.make_move(db, started_room["id"], user, cell)

    replay = get_room_replay(started_room["id"], db)

    assert replay["total_moves"] == 3
    assert replay["moves"][-1]["board_after_move"] == replay["room"].board == "O---X---X"


def test_replay_of_unknown_room(db):
    with pytest.raises(RoomNotFound):
        get_room_replay("missing", db)


# ============ room history ============

def _play(db, creator, joiner, cells):
    """creator opens the room, joiner takes the second seat, then they alternate through cells"""
    room = RoomManager.create_room(db, creator)
    RoomManager.join_room(db, room.code, joiner)
    for index, cell in enumerate(cells):
        GameManager.make_move(db, room.id, creator if index % 2 == 0 else joiner, cell)
    return room.id


def test_room_history_results_pagination_and_stats(db):
    won = _play(db, ALICE, BOB, [0, 3, 1, 4, 2])
    drawn = _play(db, BOB, ALICE, [0, 1, 2, 4, 3, 5, 7, 6, 8])
    lost = _play(db, CAROL, ALICE, [0, 3, 1, 4, 2])
    _play(db, ALICE, CAROL, [4])
    _play(db, BOB, CAROL, [0, 3, 1, 4, 2])

    first_page = get_room_history(ALICE, db, limit=2, offset=0)
    second_page = get_room_history(ALICE, db, limit=2, offset=2)

    assert first_page["pagination"] == {"total": 3, "limit": 2, "offset": 0, "has_more": True}
    assert second_page["pagination"]["has_more"] is False
    assert first_page["stats"] == {"total": 3, "wins": 1, "losses": 1, "draws": 1}

    games = {g["id"]: g for g in first_page["games"] + second_page["games"]}
    assert set(games) == {won, drawn, lost}
    assert games[won]["result"] == "win"
    assert games[drawn]["result"] == "draw"
    assert games[lost]["result"] == "loss"
    assert games[drawn]["move_count"] == 9
    assert games[lost]["move_count"] == 5


def test_forfeit_counts_as_win_for_player1(db, started_room):
    RoomManager.leave_room(db, started_room["code"], BOB)

    history = get_room_history(ALICE, db)

    assert history["stats"] == {"total": 1, "wins": 1, "losses": 0, "draws": 0}
    assert history["games"][0]["move_count"] == 0
