"""
时钟抽象

定时器只通过 now() 读取时间，测试时注入 VirtualClock
"""
import threading
import time


class SystemClock:
    """系统单调时钟"""

    def now(self) -> float:
        return time.monotonic()


class VirtualClock:
    """虚拟时钟（测试用）

    时间只在 advance() 时前进
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float):
        with self._lock:
            self._now += seconds
