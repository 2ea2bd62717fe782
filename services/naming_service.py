"""
命名服務：生成 Room Code

純計算邏輯，不涉及狀態轉換
"""
import random

# 去掉容易看錯的字元（I、O、0、1）
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_room_code(length: int = 6) -> str:
    """
    生成隨機的房間代碼

    範例：K7QF2M, XH9PAB

    注意：
    - 不檢查唯一性（由呼叫者負責）
    - 32^6 = 1,073,741,824 種可能，碰撞機率極低
    """
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))


def normalize_room_code(code: str) -> str:
    """房間代碼不分大小寫，前後空白忽略"""
    return code.strip().upper()
