"""
勝負判定服務：勝利 / 平手偵測、合法落子列舉、棋盤合法性驗證

純計算邏輯，不涉及狀態轉換
"""
from dataclasses import dataclass
from typing import List, Optional

from core.exceptions import MalformedBoard
from services.board import Board, Symbol, BOARD_SIZE

# 8 條連線：3 橫、3 直、2 斜
WINNING_LINES = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
)


@dataclass(frozen=True)
class Outcome:
    """棋盤的終局狀態"""
    winner: Optional[Symbol]
    is_draw: bool

    @property
    def is_over(self) -> bool:
        return self.winner is not None or self.is_draw


def winner(board: Board) -> Optional[Symbol]:
    """
    檢查 8 條連線，回傳第一條三子相同的符號

    注意：
        - 不假設最多只有一條連線（搜尋中的假想棋盤也會呼叫）
        - 依 WINNING_LINES 的順序回傳第一個找到的
    """
    for a, b, c in WINNING_LINES:
        if board[a] is not None and board[a] == board[b] == board[c]:
            return board[a]
    return None


def is_draw(board: Board) -> bool:
    """棋盤已滿且沒有贏家"""
    return all(cell is not None for cell in board) and winner(board) is None


def is_terminal(board: Board) -> bool:
    return winner(board) is not None or is_draw(board)


def legal_moves(board: Board) -> List[int]:
    """所有空格的 index，由小到大"""
    return [index for index in range(BOARD_SIZE) if board[index] is None]


def evaluate(board: Board) -> Outcome:
    """一次取得贏家與平手狀態"""
    found = winner(board)
    return Outcome(winner=found, is_draw=found is None and not legal_moves(board))


def has_valid_parity(board: Board) -> bool:
    """
    X 先手，所以 X 的數量必須等於 O，或比 O 多一

    用途：
        驗證外部傳入的棋盤是否可能由輪流落子產生
    """
    x_count = board.count(Symbol.X)
    o_count = board.count(Symbol.O)
    return o_count <= x_count <= o_count + 1


def next_symbol(board: Board) -> Symbol:
    """輪到誰：X 數量 <= O 數量時輪到 X"""
    return Symbol.X if board.count(Symbol.X) <= board.count(Symbol.O) else Symbol.O


def validate_board(text: str) -> Board:
    """
    解析並驗證外部傳入的棋盤字串

    參數：
        text: 9 字元棋盤字串

    返回：
        Board

    異常：
        MalformedBoard: 長度錯誤、含非法字元、或 X/O 數量不符合輪流落子
    """
    try:
        board = Board.deserialize(text)
    except ValueError as e:
        raise MalformedBoard(str(e)) from e

    if not has_valid_parity(board):
        raise MalformedBoard(
            f"Invalid move count in {text!r}: "
            f"X={board.count(Symbol.X)}, O={board.count(Symbol.O)}"
        )
    return board
