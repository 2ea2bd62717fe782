"""
棋盤：3x3 井字棋盤的不可變值型別

純計算邏輯，不涉及狀態轉換

序列化格式：9 個字元，row-major，'X' / 'O' / '-'（空格）
範例：'----X----' 表示只有中央有 X
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple

BOARD_SIZE = 9
EMPTY_CELL = "-"
EMPTY_BOARD = EMPTY_CELL * BOARD_SIZE
CENTER = 4


class Symbol(str, Enum):
    """棋子符號；X 永遠先手"""
    X = "X"
    O = "O"

    def opposite(self) -> "Symbol":
        return Symbol.O if self == Symbol.X else Symbol.X


Cell = Optional[Symbol]


@dataclass(frozen=True)
class Board:
    """
    不可變的 9 格棋盤

    每次落子都會產生新的 Board（見 apply_move），
    所以可以安全地在多個執行緒 / 遞迴搜尋之間共用
    """
    cells: Tuple[Cell, ...] = (None,) * BOARD_SIZE

    def __post_init__(self):
        if len(self.cells) != BOARD_SIZE:
            raise ValueError(f"Board must have exactly {BOARD_SIZE} cells, got {len(self.cells)}")

    @classmethod
    def empty(cls) -> "Board":
        return cls()

    @classmethod
    def deserialize(cls, text: str) -> "Board":
        """
        從 9 字元字串還原 Board

        只檢查長度和字元；輪流落子的數量檢查在 outcome_service.validate_board

        異常：
            ValueError: 長度不是 9 或含有非法字元
        """
        if text is None or len(text) != BOARD_SIZE:
            raise ValueError(f"Board string must be {BOARD_SIZE} characters: {text!r}")

        cells = []
        for char in text:
            if char == EMPTY_CELL:
                cells.append(None)
            elif char in (Symbol.X.value, Symbol.O.value):
                cells.append(Symbol(char))
            else:
                raise ValueError(f"Invalid board character {char!r} in {text!r}")
        return cls(tuple(cells))

    def serialize(self) -> str:
        return "".join(EMPTY_CELL if cell is None else cell.value for cell in self.cells)

    def count(self, symbol: Symbol) -> int:
        return sum(1 for cell in self.cells if cell == symbol)

    def is_empty(self) -> bool:
        return all(cell is None for cell in self.cells)

    def __getitem__(self, index: int) -> Cell:
        return self.cells[index]

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return BOARD_SIZE

    def __str__(self) -> str:
        return self.serialize()


def is_legal(board: Board, cell: int) -> bool:
    """格子在 0-8 之間且是空的"""
    if not isinstance(cell, int) or isinstance(cell, bool):
        return False
    if cell < 0 or cell >= BOARD_SIZE:
        return False
    return board[cell] is None


def apply_move(board: Board, cell: int, symbol: Symbol) -> Board:
    """
    在 cell 放下 symbol，回傳新的 Board

    注意：
        - 不會重新驗證（呼叫者必須先用 is_legal 檢查）
        - 原本的 board 不會被修改
    """
    cells = list(board.cells)
    cells[cell] = symbol
    return Board(tuple(cells))
