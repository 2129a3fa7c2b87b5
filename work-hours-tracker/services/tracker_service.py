# services/tracker_service.py
"""ユーザー操作ごとに ストア読込 → 変更 → 書込 を行うアプリケーションサービス"""
import dataclasses
import threading
from datetime import date, datetime, time
from pathlib import Path
from typing import Optional, Union

from accounting import exporter, importer
from accounting.durations import MS_PER_MINUTE, format_duration
from accounting.history import HistoryStore, build_manual_entry
from accounting.leaves import add_leave, delete_leave, leaves_in_month
from accounting.models import BreakRecord, HistoryEntry, LeaveEntry, Settings
from accounting.reminders import DEFAULT_BREAK_ALLOWANCE_MS, checkout_reminder_at
from accounting.session import WorkSession
from graph.graph import initial_state
from services.file_reader import FileReaderInterface, LocalFileReader
from services.storage import TrackerRepository

REMINDER_MESSAGE = ("Checkout Reminder", "Time to check out for the day!")


def _now() -> datetime:
    """テスト時にモック可能な現在時刻取得"""
    return datetime.now()


@dataclasses.dataclass
class ImportSummary:
    kind: str                       # "json" / "csv"
    accepted: int = 0               # 取り込んだ履歴件数
    warnings: list[str] = dataclasses.field(default_factory=list)


class WorkTracker:
    def __init__(
        self,
        repository: TrackerRepository,
        notifier=None,
        reminders=None,
        file_reader: Optional[FileReaderInterface] = None,
        break_allowance_ms: int = DEFAULT_BREAK_ALLOWANCE_MS,
    ):
        self._repo = repository
        self._notifier = notifier
        self._reminders = reminders
        self._file_reader = file_reader or LocalFileReader()
        self._break_allowance_ms = break_allowance_ms
        self._lock = threading.RLock()

    # --- 参照 -------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._repo.load_settings()

    @property
    def history(self) -> HistoryStore:
        return self._repo.load_history()

    @property
    def leaves(self) -> list[LeaveEntry]:
        return self._repo.load_leaves()

    def session(self) -> WorkSession:
        """今日のセッション。日付が変わっていれば破棄した状態で保存し直す"""
        with self._lock:
            today = _now().date()
            session = self._repo.load_session(today)
            self._repo.save_session(session)
            return session

    def month_entries(self, year: int, month: int) -> list[Union[HistoryEntry, LeaveEntry]]:
        """指定月の勤怠記録と休暇を新しい日付順に並べる"""
        items: list[Union[HistoryEntry, LeaveEntry]] = []
        items.extend(self.history.in_month(year, month))
        items.extend(leaves_in_month(self.leaves, year, month))
        return sorted(items, key=lambda item: item.date, reverse=True)

    # --- 打刻 -------------------------------------------------------

    def check_in(self) -> bool:
        with self._lock:
            now = _now()
            session = self._repo.load_session(now.date())
            changed = session.check_in(now)
            if changed:
                self._repo.save_session(session)
                self.reschedule_reminders(session=session)
            return changed

    def break_in(self) -> bool:
        with self._lock:
            now = _now()
            session = self._repo.load_session(now.date())
            changed = session.break_in(now)
            if changed:
                self._repo.save_session(session)
            return changed

    def break_out(self) -> Optional[BreakRecord]:
        with self._lock:
            now = _now()
            session = self._repo.load_session(now.date())
            record = session.break_out(now)
            if record is not None:
                self._repo.save_session(session)
            return record

    def check_out(self) -> HistoryEntry:
        """退勤し、出勤日をキーに履歴へ書き込む"""
        with self._lock:
            now = _now()
            settings = self._repo.load_settings()
            session = self._repo.load_session(now.date())
            entry = session.check_out(now, settings.overtime_threshold_hours)

            history = self._repo.load_history()
            history.put(entry)
            self._repo.save_history(history)
            self._repo.save_session(session)
            self.reschedule_reminders(session=session, settings=settings)
            print(f"[勤怠トラッカー] Checked out! Worked {format_duration(entry.total_worked)}")
            return entry

    # --- 手動編集・休暇・設定 ---------------------------------------

    def save_entry(self, day: date, check_in: time, check_out: time, break_minutes: float) -> HistoryEntry:
        with self._lock:
            settings = self._repo.load_settings()
            entry = build_manual_entry(
                day, check_in, check_out, break_minutes, settings.overtime_threshold_hours
            )
            history = self._repo.load_history()
            history.put(entry)
            self._repo.save_history(history)
            return entry

    def add_leave(self, day: date, leave_type: str, notes: str = "") -> list[LeaveEntry]:
        with self._lock:
            leaves = add_leave(self._repo.load_leaves(), day, leave_type, notes)
            self._repo.save_leaves(leaves)
            return leaves

    def delete_leave(self, day: date) -> list[LeaveEntry]:
        with self._lock:
            leaves = delete_leave(self._repo.load_leaves(), day)
            self._repo.save_leaves(leaves)
            return leaves

    def update_settings(self, **changes) -> Settings:
        """設定を部分更新する（日付は1〜31に丸め、繰越は0以上）"""
        with self._lock:
            settings = dataclasses.replace(self._repo.load_settings(), **changes)
            self._repo.save_settings(settings)
            self.reschedule_reminders(settings=settings)
            return settings

    def clear_all(self):
        with self._lock:
            self._repo.clear()
            self.reschedule_reminders()

    # --- エクスポート・インポート -----------------------------------

    def export_csv(self, year: int, month: int) -> str:
        return exporter.export_month_csv(self.history, year, month)

    def export_backup(self) -> str:
        with self._lock:
            backup = exporter.build_backup(
                self._repo.load_history(),
                self._repo.load_settings(),
                self._repo.load_leaves(),
                _now(),
            )
        return exporter.dump_backup(backup)

    def import_backup_text(self, text: str) -> ImportSummary:
        """バックアップJSONで各ストアを丸ごと置き換える（含まれるキーのみ）"""
        payload = importer.parse_backup(text)
        with self._lock:
            if payload.history is not None:
                self._repo.save_history(payload.history)
            if payload.settings is not None:
                self._repo.save_settings(payload.settings)
            if payload.leaves is not None:
                self._repo.save_leaves(payload.leaves)
            self.reschedule_reminders()
        accepted = len(payload.history) if payload.history is not None else 0
        return ImportSummary(kind="json", accepted=accepted)

    def import_csv_text(self, text: str) -> ImportSummary:
        """CSVの行を日付キーで履歴にマージする"""
        with self._lock:
            settings = self._repo.load_settings()
            result = importer.parse_csv(text, settings.overtime_threshold_hours, _now().date())
            history = self._repo.load_history()
            history.merge(result.entries)
            self._repo.save_history(history)
        return ImportSummary(kind="csv", accepted=result.accepted, warnings=result.warnings)

    async def import_file(self, path: str) -> ImportSummary:
        """ファイルを非同期に読み込んでから取り込む。読み込み完了までストアには触れない"""
        text = await self._file_reader.read_text(path)
        if Path(path).suffix.lower() == ".json" or text.lstrip("\ufeff \r\n\t").startswith("{"):
            return self.import_backup_text(text)
        return self.import_csv_text(text)

    # --- リマインダー・ダッシュボード -------------------------------

    def _send_checkout_reminder(self):
        if self._notifier is not None:
            self._notifier.notify(*REMINDER_MESSAGE)

    def reschedule_reminders(self, session: Optional[WorkSession] = None, settings: Optional[Settings] = None):
        """退勤リマインダーを取り消してから再設定する"""
        if self._reminders is None:
            return None
        now = _now()
        if session is None:
            session = self._repo.load_session(now.date())
        if settings is None:
            settings = self._repo.load_settings()
        when = checkout_reminder_at(session, settings, now, self._break_allowance_ms)
        return self._reminders.reschedule(when, self._send_checkout_reminder)

    def dashboard(self, graph) -> dict:
        """ダッシュボードグラフを1回実行し、セッションの変化（日付跨ぎ・残業通知済み）を保存する

        保存されたままのセッションを渡し、日付跨ぎの破棄はグラフのday_rolloverノードで行う。
        """
        with self._lock:
            now = _now()
            session = self._repo.load_stored_session(now.date())
            alerted_before = session.overtime_alerted
            result = graph.invoke(
                initial_state(now, self._repo.load_settings(), session, self._repo.load_history())
            )
            session = result["session"]
            if result["session_reset"] or session.overtime_alerted != alerted_before:
                self._repo.save_session(session)
            return result


def break_minutes_of(entry: HistoryEntry) -> int:
    """編集フォーム用: 休憩合計を分に丸める"""
    return int(round(entry.total_break / MS_PER_MINUTE))
