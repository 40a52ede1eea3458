#!filepath: specrun/core/reporter.py
from __future__ import annotations

from typing import List, Optional

from rich.console import Console

from specrun import logs


class Reporter:
    """
    最小 reporter：message() 输出到终端并写日志
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.messages: List[str] = []

    def message(self, text: str) -> None:
        self.messages.append(text)
        self.console.print(text, markup=False, highlight=False)
        logs.info(f"[Reporter] {text}")
