from __future__ import annotations

from queue import Queue
from typing import Protocol


class ThreadedProvider(Protocol):
    """start() で別スレッドを起動し、stop() で後始末するプロバイダ"""

    def start(self, out_queue: Queue) -> None: ...
    def stop(self) -> None: ...


class PollingProvider(Protocol):
    """毎フレーム poll() され、入力イベントをキューへ積むプロバイダ"""

    source: str

    def poll(self, px, out_queue: Queue) -> None: ...
