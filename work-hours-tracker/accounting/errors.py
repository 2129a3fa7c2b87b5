# accounting/errors.py


class TrackerError(Exception):
    """勤怠トラッカーの例外の基底クラス"""


class SessionStateError(TrackerError):
    """現在のセッション状態では実行できない操作"""

    def __init__(self, message: str = "Not checked in."):
        super().__init__(message)


class InvalidEntryError(TrackerError):
    """手動入力された勤怠記録が不正"""

    def __init__(
        self,
        message: str = "Check-out time must be after check-in time once breaks are deducted.",
    ):
        super().__init__(message)


class ImportRejectedError(TrackerError):
    """インポート全体を拒否した（ストアは変更されていない）"""

    def __init__(self, message: str = "Invalid file format"):
        super().__init__(message)
