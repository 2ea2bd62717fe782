"""
服務層

這個 package 包含純計算邏輯，不負責狀態轉換：
- Board：棋盤表示與序列化
- OutcomeService：勝負判定
- SearchService：Bot 的 minimax 搜尋
- NamingService：房間代碼生成
- HistoryService / ReplayService：歷史戰績與重播
"""
