# report.py
from __future__ import annotations
from typing import BinaryIO, Optional

from rich.console import Console
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TransferSpeedColumn


class ProgressSink:
    """
    Обёртка над выходным потоком: пишет байты дальше и двигает
    прогресс-бар rich. Используется как контекстный менеджер.
    """
    def __init__(self, out: BinaryIO, total: int, description: str = "",
                 console: Optional[Console] = None):
        self.out = out
        self.total = total
        self.written = 0
        self._progress = Progress(
            TextColumn("[cyan]{task.description}[/]"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=console,
        )
        self._description = description
        self._task = None

    def __enter__(self) -> "ProgressSink":
        self._progress.start()
        self._task = self._progress.add_task(self._description, total=self.total)
        return self

    def __exit__(self, exc_type, exc, tb):
        self._progress.stop()
        return False

    def write(self, data: bytes) -> int:
        n = self.out.write(data)
        self.written += len(data)
        if self._task is not None:
            self._progress.advance(self._task, len(data))
        return n
