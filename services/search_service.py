"""
搜尋服務：Bot 的 Minimax + Alpha-Beta 選步

純計算邏輯，不涉及狀態轉換

Bot 永遠不會輸：
- 完整搜尋剩下的 game tree（最多 9 層）
- 勝利分數 10 - depth（越快贏越好），落敗分數 depth - 10（越慢輸越好），平手 0
- 同分時選第一個（index 由小到大），結果可重現

捷徑（不影響正確性，只是更快）：
1. 空棋盤 -> 中央
2. 對手第一手沒下中央 -> 中央
3. 可以直接贏 -> 直接贏
4. 對手下一手會贏 -> 擋住
"""
import logging
import math

from services.board import Board, Symbol, CENTER, BOARD_SIZE, apply_move
from services.outcome_service import winner, is_draw, legal_moves

logger = logging.getLogger(__name__)

# 沒有合法落子時的回傳值（呼叫者保證不會發生）
NO_MOVE = -1

WIN_SCORE = 10


def minimax(
    board: Board,
    depth: int,
    is_maximizing: bool,
    alpha: float,
    beta: float,
    symbol: Symbol,
    opponent: Symbol,
) -> int:
    """
    Minimax with alpha-beta pruning

    參數：
        board: 目前棋盤（不會被修改）
        depth: 從觸發搜尋的那一手開始算的層數
        is_maximizing: True 表示輪到 symbol（行動方）
        alpha: 目前的下界
        beta: 目前的上界
        symbol: 行動方
        opponent: 對手

    返回：
        從行動方角度看的分數
    """
    found = winner(board)
    if found == symbol:
        return WIN_SCORE - depth
    if found == opponent:
        return depth - WIN_SCORE
    if is_draw(board):
        return 0

    if is_maximizing:
        best = -math.inf
        for cell in legal_moves(board):
            score = minimax(apply_move(board, cell, symbol), depth + 1, False, alpha, beta, symbol, opponent)
            best = max(best, score)
            alpha = max(alpha, score)
            if beta <= alpha:
                break  # Prune
        return best

    best = math.inf
    for cell in legal_moves(board):
        score = minimax(apply_move(board, cell, opponent), depth + 1, True, alpha, beta, symbol, opponent)
        best = min(best, score)
        beta = min(beta, score)
        if beta <= alpha:
            break  # Prune
    return best


def _completing_move(board: Board, moves, symbol: Symbol):
    """第一個能讓 symbol 立刻連線的格子，沒有就回傳 None"""
    for cell in moves:
        if winner(apply_move(board, cell, symbol)) == symbol:
            return cell
    return None


def find_best_move(board: Board, symbol: Symbol, opponent: Symbol) -> int:
    """
    為 symbol 找出最佳落子

    參數：
        board: 目前棋盤（必須不是終局）
        symbol: 行動方（Bot）
        opponent: 對手（玩家）

    返回：
        格子 index (0-8)，沒有合法落子時回傳 NO_MOVE
    """
    moves = legal_moves(board)

    if not moves:
        return NO_MOVE

    if board.is_empty():
        return CENTER

    if len(moves) == BOARD_SIZE - 1 and board[CENTER] is None:
        return CENTER

    immediate_win = _completing_move(board, moves, symbol)
    if immediate_win is not None:
        return immediate_win

    block = _completing_move(board, moves, opponent)
    if block is not None:
        return block

    best_move = moves[0]
    best_score = -math.inf

    for cell in moves:
        score = minimax(apply_move(board, cell, symbol), 0, False, -math.inf, math.inf, symbol, opponent)
        if score > best_score:
            best_score = score
            best_move = cell

    logger.debug(f"Search picked cell {best_move} (score={best_score}) for {symbol.value} on {board}")
    return best_move
