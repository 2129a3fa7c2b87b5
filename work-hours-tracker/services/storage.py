# services/storage.py
import json
import os
import sys
import tempfile
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Optional

from accounting.history import HistoryStore
from accounting.models import LeaveEntry, Settings
from accounting.session import WorkSession

STATE_KEY = "workState"
HISTORY_KEY = "workHistory"
SETTINGS_KEY = "workSettings"
LEAVES_KEY = "leaves"


class KeyValueStore(ABC):
    """文字列のキー・バリューストアの抽象インターフェース"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryStore(KeyValueStore):
    """メモリ上のストア（テスト・一時利用）"""

    def __init__(self, initial: Optional[dict] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()


class JsonFileStore(KeyValueStore):
    """1つのJSONファイルに全キーを保存するストア"""

    def __init__(self, path: str):
        self._path = Path(path)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            print(f"[ストレージ] {self._path} を読み込めません: {e}", file=sys.stderr)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict):
        # 書き込み途中で落ちても元ファイルが壊れないよう一時ファイル経由で置き換える
        dirpath = self._path.parent if str(self._path.parent) else Path(".")
        dirpath.mkdir(parents=True, exist_ok=True)
        tmp = tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", delete=False, dir=dirpath, suffix=".tmp"
        )
        try:
            with tmp:
                json.dump(data, tmp, ensure_ascii=False, indent=2)
            os.replace(tmp.name, self._path)
        except OSError:
            if os.path.exists(tmp.name):
                os.unlink(tmp.name)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def clear(self) -> None:
        self._write_all({})


class TrackerRepository:
    """設定・セッション・履歴・休暇の4つのレコードを読み書きする

    保存値が壊れている場合は、そのレコードだけデフォルトに戻す。
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    def _load_json(self, key: str):
        raw = self._store.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def _save_json(self, key: str, value):
        self._store.set(key, json.dumps(value, ensure_ascii=False))

    def _reset_notice(self, key: str, error: Exception):
        print(f"[ストレージ] {key} が壊れているため初期化します: {error}", file=sys.stderr)

    def load_settings(self) -> Settings:
        try:
            data = self._load_json(SETTINGS_KEY)
            return Settings.from_dict(data) if data else Settings()
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            self._reset_notice(SETTINGS_KEY, e)
            return Settings()

    def save_settings(self, settings: Settings):
        self._save_json(SETTINGS_KEY, settings.to_dict())

    def load_stored_session(self, default_day: date) -> WorkSession:
        """保存されたままのセッション。日付跨ぎの破棄は呼び出し側（ダッシュボード）に任せる"""
        try:
            data = self._load_json(STATE_KEY)
            return WorkSession.from_dict(data) if data else WorkSession(current_date=default_day)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            self._reset_notice(STATE_KEY, e)
            return WorkSession(current_date=default_day)

    def load_session(self, today: date) -> WorkSession:
        """今日のセッション。保存日が今日でなければ新しいセッションを返す"""
        try:
            data = self._load_json(STATE_KEY)
            return WorkSession.restore(data, today) if data else WorkSession(current_date=today)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            self._reset_notice(STATE_KEY, e)
            return WorkSession(current_date=today)

    def save_session(self, session: WorkSession):
        self._save_json(STATE_KEY, session.to_dict())

    def load_history(self) -> HistoryStore:
        try:
            data = self._load_json(HISTORY_KEY)
            return HistoryStore.from_dict(data) if data else HistoryStore()
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            self._reset_notice(HISTORY_KEY, e)
            return HistoryStore()

    def save_history(self, history: HistoryStore):
        self._save_json(HISTORY_KEY, history.to_dict())

    def load_leaves(self) -> list[LeaveEntry]:
        try:
            data = self._load_json(LEAVES_KEY)
            return [LeaveEntry.from_dict(item) for item in data] if data else []
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            self._reset_notice(LEAVES_KEY, e)
            return []

    def save_leaves(self, leaves: list[LeaveEntry]):
        self._save_json(LEAVES_KEY, [leave.to_dict() for leave in leaves])

    def clear(self):
        self._store.clear()
