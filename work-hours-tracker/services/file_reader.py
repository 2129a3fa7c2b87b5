import asyncio
from abc import ABC, abstractmethod
from pathlib import Path


class FileReaderInterface(ABC):
    """インポート用ファイル読み込みの抽象インターフェース"""

    @abstractmethod
    async def read_text(self, path: str) -> str:
        """ファイル全体をテキストとして読み込む"""
        ...


class LocalFileReader(FileReaderInterface):
    """ローカルファイルをスレッドで読み込む"""

    def __init__(self, encoding: str = "utf-8-sig"):
        self._encoding = encoding

    async def read_text(self, path: str) -> str:
        return await asyncio.to_thread(Path(path).read_text, encoding=self._encoding)
