import pytest

from models import BotGame, BotMove, BotActor, GameStatus
from core.bot_game_manager import BotGameManager
from core.exceptions import GameNotFound, NotYourGame, IllegalMove, VersionConflict, AlreadyFinished
from services.board import Board
from services.outcome_service import winner
from services.history_service import get_bot_game_history, get_bot_game_stats
from tests.conftest import ALICE, BOB


def test_create_game_human_first(db):
    game = BotGameManager.create_game(db, ALICE)

    assert game.board == "---------"
    assert game.player_symbol == "X"
    assert game.current_turn == BotActor.HUMAN
    assert game.status == GameStatus.IN_PROGRESS
    assert game.version == 0
    assert game.moves == []


def test_create_game_bot_first_records_opening(db):
    game = BotGameManager.create_game(db, ALICE, human_goes_first=False)

    assert game.board == "----X----"
    assert game.player_symbol == "O"
    assert game.current_turn == BotActor.HUMAN
    assert game.version == 0
    [opening] = game.moves
    assert (opening.player, opening.position, opening.symbol, opening.move_order) == (BotActor.BOT, 4, "X", 1)


def test_move_appends_human_and_bot_entries(db):
    game = BotGameManager.create_game(db, ALICE)
    game, bot_move = BotGameManager.make_move(db, game.id, ALICE, 0, expected_version=0)

    assert bot_move == 4
    assert game.board == "X---O----"
    assert game.version == 1
    assert game.current_turn == BotActor.HUMAN
    assert [(m.player, m.position, m.move_order) for m in game.moves] == [
        (BotActor.HUMAN, 0, 1),
        (BotActor.BOT, 4, 2),
    ]


def test_move_continues_numbering_after_bot_opening(db):
    game = BotGameManager.create_game(db, ALICE, human_goes_first=False)
    game, bot_move = BotGameManager.make_move(db, game.id, ALICE, 0)

    assert [m.move_order for m in game.moves] == [1, 2, 3]
    assert game.moves[1].symbol == "O"
    assert game.moves[2].position == bot_move


def test_game_against_bot_never_ends_in_human_win(db):
    game = BotGameManager.create_game(db, ALICE)
    while game.status != GameStatus.FINISHED:
        board = Board.deserialize(game.board)
        # human plays the lowest empty cell every turn
        cell = next(i for i, c in enumerate(board) if c is None)
        game, _ = BotGameManager.make_move(db, game.id, ALICE, cell)

    assert game.winner in (BotActor.BOT, None)
    assert game.current_turn is None
    if game.winner == BotActor.BOT:
        assert winner(Board.deserialize(game.board)).value == "O"
    else:
        assert "-" not in game.board


def test_rejections(db):
    game = BotGameManager.create_game(db, ALICE)
    BotGameManager.make_move(db, game.id, ALICE, 0)

    with pytest.raises(IllegalMove):
        BotGameManager.make_move(db, game.id, ALICE, 4)
    with pytest.raises(VersionConflict):
        BotGameManager.make_move(db, game.id, ALICE, 8, expected_version=0)
    with pytest.raises(GameNotFound):
        BotGameManager.make_move(db, "missing", ALICE, 0)

    db.expire_all()
    assert BotGameManager.get_game(db, game.id, ALICE).version == 1


def test_only_owner_can_read_or_move(db):
    game = BotGameManager.create_game(db, ALICE)

    with pytest.raises(NotYourGame):
        BotGameManager.get_game(db, game.id, BOB)
    with pytest.raises(NotYourGame):
        BotGameManager.make_move(db, game.id, BOB, 0)


def test_finished_game_rejects_moves(db):
    game = BotGame(user_id=ALICE, board="XXXOO----", status=GameStatus.FINISHED,
                   current_turn=None, winner=BotActor.HUMAN, version=3)
    db.add(game)
    db.commit()

    with pytest.raises(AlreadyFinished):
        BotGameManager.make_move(db, game.id, ALICE, 8)


# ============ history ============

def _finished_game(db, user_id, winner_actor, moves=0):
    game = BotGame(user_id=user_id, board="XOXXOOOXX", status=GameStatus.FINISHED,
                   current_turn=None, winner=winner_actor, version=1)
    for order in range(1, moves + 1):
        game.moves.append(BotMove(player=BotActor.HUMAN, position=order - 1, symbol="X", move_order=order))
    db.add(game)
    db.commit()
    return game


def test_stats_count_only_finished_games(db):
    _finished_game(db, ALICE, BotActor.HUMAN)
    _finished_game(db, ALICE, BotActor.BOT)
    _finished_game(db, ALICE, BotActor.BOT)
    _finished_game(db, ALICE, None)
    _finished_game(db, BOB, BotActor.BOT)
    BotGameManager.create_game(db, ALICE)

    assert get_bot_game_stats(ALICE, db) == {"total": 4, "wins": 1, "losses": 2, "draws": 1}


def test_history_pagination_and_move_counts(db):
    _finished_game(db, ALICE, BotActor.BOT, moves=3)
    _finished_game(db, ALICE, None, moves=5)
    BotGameManager.create_game(db, ALICE)
    _finished_game(db, BOB, BotActor.BOT, moves=7)

    first_page = get_bot_game_history(ALICE, db, limit=2, offset=0)
    second_page = get_bot_game_history(ALICE, db, limit=2, offset=2)

    assert first_page["pagination"] == {"total": 3, "limit": 2, "offset": 0, "has_more": True}
    assert second_page["pagination"]["has_more"] is False
    assert len(first_page["games"]) == 2
    assert len(second_page["games"]) == 1

    counts = sorted(g["move_count"] for g in first_page["games"] + second_page["games"])
    assert counts == [0, 3, 5]
    assert first_page["stats"] == {"total": 2, "wins": 0, "losses": 1, "draws": 1}
