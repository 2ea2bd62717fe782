import pytest

from services.board import Board, Symbol, apply_move
from services.outcome_service import winner, is_terminal, legal_moves
from services.search_service import find_best_move, minimax, NO_MOVE


def test_empty_board_takes_center():
    assert find_best_move(Board.empty(), Symbol.X, Symbol.O) == 4


@pytest.mark.parametrize("opening", [0, 1, 2, 3, 5, 6, 7, 8])
def test_reply_to_non_center_opening_is_center(opening):
    board = apply_move(Board.empty(), opening, Symbol.X)
    assert find_best_move(board, Symbol.O, Symbol.X) == 4


def test_takes_immediate_win():
    # O can win on 2 (top row) and must prefer it over blocking X on 8
    board = Board.deserialize("OO-XX---X")
    assert find_best_move(board, Symbol.O, Symbol.X) == 2


def test_blocks_immediate_loss():
    board = Board.deserialize("XX--O----")
    assert find_best_move(board, Symbol.O, Symbol.X) == 2


def test_reply_to_center_is_first_corner():
    # edges lose against a center opening; corners all draw, so the lowest index wins the tie
    board = apply_move(Board.empty(), 4, Symbol.X)
    assert find_best_move(board, Symbol.O, Symbol.X) == 0


def test_full_board_has_no_move():
    assert find_best_move(Board.deserialize("XOXOXOOXO"), Symbol.X, Symbol.O) == NO_MOVE


def test_minimax_prefers_faster_wins():
    # X to move can win immediately on 2
    board = Board.deserialize("XX-OO----")
    after = apply_move(board, 2, Symbol.X)
    assert minimax(after, 0, False, float("-inf"), float("inf"), Symbol.X, Symbol.O) == 10


def test_search_does_not_mutate_input():
    board = Board.deserialize("X---O----")
    find_best_move(board, Symbol.X, Symbol.O)
    assert board.serialize() == "X---O----"


def _bot_never_loses(board, bot, human, to_move):
    """Explore every human reply; the bot answers with find_best_move."""
    if is_terminal(board):
        assert winner(board) != human, f"bot lost on {board}"
        return
    if to_move == bot:
        cell = find_best_move(board, bot, human)
        assert cell in legal_moves(board)
        _bot_never_loses(apply_move(board, cell, bot), bot, human, human)
    else:
        for cell in legal_moves(board):
            _bot_never_loses(apply_move(board, cell, human), bot, human, bot)


def test_bot_as_o_never_loses_against_any_line():
    _bot_never_loses(Board.empty(), Symbol.O, Symbol.X, Symbol.X)


def test_bot_as_x_never_loses_against_any_line():
    _bot_never_loses(Board.empty(), Symbol.X, Symbol.O, Symbol.X)


def test_self_play_is_a_draw():
    board = Board.empty()
    symbol = Symbol.X
    while not is_terminal(board):
        board = apply_move(board, find_best_move(board, symbol, symbol.opposite()), symbol)
        symbol = symbol.opposite()

    assert winner(board) is None
