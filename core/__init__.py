"""
核心業務邏輯層

這個 package 包含所有核心業務邏輯，包括：
- 狀態機：集中管理 Room 與 BotGame 的所有狀態轉換（純函數）
- Manager：管理 Room、落子與 BotGame 的生命週期
- Locks：樂觀鎖與原子搶座位
"""
