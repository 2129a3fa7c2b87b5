# schedulers/scheduler.py
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger


class TickScheduler:
    """APSchedulerによる表示更新ティック（既定1秒）"""

    def __init__(self, interval_seconds: int, job_func: Callable, scheduler=None):
        self._interval = interval_seconds
        self._job_func = job_func
        self._scheduler = scheduler if scheduler is not None else BackgroundScheduler()
        self._scheduler.add_job(
            self._job_func,
            trigger=IntervalTrigger(seconds=self._interval),
            id="dashboard_tick",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def start(self):
        """スケジューラ開始"""
        self._scheduler.start()

    def stop(self):
        """スケジューラ停止"""
        self._scheduler.shutdown(wait=False)


class ReminderScheduler:
    """1回だけ実行するリマインダー。再設定時は必ず既存の予約を取り消してから登録する"""

    def __init__(self, scheduler=None):
        self._scheduler = scheduler if scheduler is not None else BackgroundScheduler()
        self._handles: set[str] = set()
        self._counter = 0

    def schedule_at(self, when: datetime, callback: Callable) -> str:
        """指定時刻に1回だけcallbackを実行し、取り消し用のハンドルを返す"""
        self._counter += 1
        handle = f"reminder-{self._counter}"
        self._scheduler.add_job(
            self._run,
            trigger=DateTrigger(run_date=when),
            args=[handle, callback],
            id=handle,
        )
        self._handles.add(handle)
        return handle

    def _run(self, handle: str, callback: Callable):
        self._handles.discard(handle)
        callback()

    def cancel(self, handle: str) -> bool:
        if handle not in self._handles:
            return False
        self._handles.discard(handle)
        try:
            self._scheduler.remove_job(handle)
        except LookupError:
            # 実行直前に発火済み
            return False
        return True

    def cancel_all(self):
        for handle in list(self._handles):
            self.cancel(handle)

    def reschedule(self, when: Optional[datetime], callback: Callable) -> Optional[str]:
        """既存の予約をすべて取り消し、whenがあれば新しく予約する"""
        self.cancel_all()
        if when is None:
            return None
        return self.schedule_at(when, callback)

    @property
    def pending(self) -> list[str]:
        return sorted(self._handles)

    def start(self):
        self._scheduler.start()

    def stop(self):
        self._scheduler.shutdown(wait=False)
