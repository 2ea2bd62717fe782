"""
自定義異常類別

集中管理所有業務邏輯異常，方便 API 層統一處理

每個異常都有：
- code: 穩定的機器可讀代碼（給前端判斷用）
- status_code: API 層對應的 HTTP 狀態碼
- retryable: 呼叫者是否可以自動重試（只有 VersionConflict 可以）
"""


class TicTacToeException(Exception):
    """所有遊戲異常的基類"""
    code = "GAME_ERROR"
    status_code = 400
    retryable = False


# ============ NotFound 相關異常 ============

class NotFound(TicTacToeException):
    """Room 或 BotGame 不存在"""
    code = "NOT_FOUND"
    status_code = 404


class RoomNotFound(NotFound):
    """房間不存在"""
    code = "ROOM_NOT_FOUND"

    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class GameNotFound(NotFound):
    """Bot 遊戲不存在"""
    code = "GAME_NOT_FOUND"

    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


# ============ 狀態相關異常 ============

class NotStarted(TicTacToeException):
    """遊戲尚未開始（還在等待 player 2）"""
    code = "GAME_NOT_STARTED"


class AlreadyFinished(TicTacToeException):
    """遊戲已經結束"""
    code = "GAME_FINISHED"


class VersionConflict(TicTacToeException):
    """
    樂觀鎖衝突：讀取之後，資料已被其他請求修改

    這是唯一可以自動重試的異常（重新讀取最新狀態後再送一次）
    """
    code = "VERSION_CONFLICT"
    status_code = 409
    retryable = True

    def __init__(self, expected_version, actual_version=None):
        self.expected_version = expected_version
        self.actual_version = actual_version
        if actual_version is None:
            message = f"Version {expected_version} is stale"
        else:
            message = f"Expected version {expected_version}, found {actual_version}"
        super().__init__(message)


# ============ 身份相關異常 ============

class NotAParticipant(TicTacToeException):
    """呼叫者不是這個房間的玩家（可能是觀戰者）"""
    code = "NOT_A_PLAYER"
    status_code = 403


class NotYourGame(TicTacToeException):
    """呼叫者不是這個 Bot 遊戲的擁有者"""
    code = "NOT_YOUR_GAME"
    status_code = 403


class AlreadyAPlayer(TicTacToeException):
    """玩家不能以觀戰者身份加入自己的房間"""
    code = "ALREADY_A_PLAYER"


# ============ 落子相關異常 ============

class WrongTurn(TicTacToeException):
    """不是呼叫者的回合"""
    code = "NOT_YOUR_TURN"


class IllegalMove(TicTacToeException):
    """格子超出範圍或已被佔用"""
    code = "INVALID_MOVE"

    def __init__(self, cell):
        self.cell = cell
        super().__init__(f"Cell {cell} is out of range or already taken")


class MalformedBoard(TicTacToeException):
    """棋盤字串不合法（長度、字元、或 X/O 數量不符合輪流落子）"""
    code = "MALFORMED_BOARD"
