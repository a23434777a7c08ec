"""
倒计时调度器

单一倒计时，每秒减一；到 0 且没有进行中的分析时触发一次分析周期。
时间来自注入的时钟，poll() 按时钟补齐应发生的 tick。
"""
from typing import Callable, Optional

from hummiguard.common import Logger
from .clock import SystemClock
from .models import MonitoringState


class CountdownScheduler:
    """倒计时调度器

    - tick(): 倒计时减一并检查是否触发
    - scan_now(): 强制倒计时归零（已有分析在进行时无效）
    - reset(): 分析周期结束后重置为当前配置的间隔
    - cancel(): 会话停止，倒计时归零并停止 tick
    """

    def __init__(self, on_zero: Callable[[], bool], clock=None,
                 tick_seconds: float = 1.0, log_dir: Optional[str] = "logs"):
        """
        Args:
            on_zero: 倒计时到 0 时调用，返回是否真正启动了分析周期
            clock: 时钟（默认 SystemClock）
            tick_seconds: tick 周期（秒）
            log_dir: 日志目录
        """
        self.on_zero = on_zero
        self.clock = clock or SystemClock()
        self.tick_seconds = tick_seconds
        self.logger = Logger(log_dir)

        self._state: Optional[MonitoringState] = None
        self._next_tick_at: Optional[float] = None

    @property
    def armed(self) -> bool:
        return self._next_tick_at is not None

    def arm(self, state: MonitoringState, countdown: int):
        """绑定会话状态并开始 tick"""
        self._state = state
        state.countdown = max(0, int(countdown))
        self._next_tick_at = self.clock.now() + self.tick_seconds
        self.logger.log("scheduler", "info", f"倒计时启动: {state.countdown}s")

    def poll(self) -> int:
        """按时钟执行到期的 tick

        Returns:
            本次执行的 tick 数
        """
        ticks = 0
        while self._next_tick_at is not None and self.clock.now() >= self._next_tick_at:
            self._next_tick_at += self.tick_seconds
            self.tick()
            ticks += 1
        return ticks

    def tick(self):
        """倒计时减一，到 0 时尝试触发"""
        state = self._state
        if state is None or not state.running:
            return

        if state.countdown > 0:
            state.countdown -= 1

        self.check_trigger()

    def check_trigger(self) -> bool:
        """倒计时为 0 且没有进行中的分析时触发

        Returns:
            是否启动了分析周期
        """
        state = self._state
        if state is None or not state.running:
            return False
        if state.countdown != 0 or state.analyzing:
            return False
        return bool(self.on_zero())

    def scan_now(self) -> bool:
        """立即扫描

        Returns:
            是否启动了分析周期
        """
        state = self._state
        if state is None or not state.running:
            return False
        if state.analyzing:
            self.logger.log("scheduler", "info", "分析进行中，忽略立即扫描")
            return False

        state.countdown = 0
        return self.check_trigger()

    def reset(self, interval_seconds: Optional[int] = None):
        """分析周期结束后重置倒计时"""
        state = self._state
        if state is None:
            return
        state.countdown = interval_seconds if interval_seconds is not None else state.interval_seconds

    def cancel(self):
        """取消倒计时（会话停止）"""
        if self._state is not None:
            self._state.countdown = 0
        self._state = None
        self._next_tick_at = None
