"""
报警提示

alert_active 且未静音时：立即提示一次，之后每 2 秒重复，
条件不成立时立即停止
"""
import sys
from typing import Callable, Optional

from hummiguard.common import Logger
from .clock import SystemClock
from .models import MonitoringState


def terminal_bell_cue(level: Optional[int]):
    """默认提示：终端响铃"""
    sys.stdout.write("\a")
    sys.stdout.flush()


class AlertEmitter:
    """报警提示器"""

    def __init__(self, cue: Optional[Callable[[Optional[int]], None]] = None,
                 clock=None, period: float = 2.0,
                 log_dir: Optional[str] = "logs"):
        """
        Args:
            cue: 提示回调，参数为当前液位
            clock: 时钟（默认 SystemClock）
            period: 提示间隔（秒）
            log_dir: 日志目录
        """
        self.cue = cue or terminal_bell_cue
        self.clock = clock or SystemClock()
        self.period = period
        self.logger = Logger(log_dir)

        self.cues_emitted = 0
        self._level: Optional[int] = None
        self._next_cue_at: Optional[float] = None

    @property
    def period(self) -> float:
        return self._period

    @period.setter
    def period(self, value: float):
        if value <= 0:
            raise ValueError(f"period 必须大于 0: {value}")
        self._period = value

    @property
    def active(self) -> bool:
        return self._next_cue_at is not None

    def sync(self, state: MonitoringState):
        """根据会话状态启动或停止提示"""
        self._level = state.level
        should_sound = state.alert_active and not state.alert_muted

        if should_sound and self._next_cue_at is None:
            self.logger.log("alert", "warning", f"报警开始 - 液位: {state.level}%")
            self._emit()
            self._next_cue_at = self.clock.now() + self.period

        elif not should_sound and self._next_cue_at is not None:
            reason = "已静音" if state.alert_muted else "液位恢复"
            self.logger.log("alert", "info", f"报警停止 ({reason})")
            self.cancel()

    def poll(self) -> int:
        """到期时提示一次

        Returns:
            本次提示次数（0 或 1）
        """
        if self._next_cue_at is None:
            return 0

        now = self.clock.now()
        if now < self._next_cue_at:
            return 0

        # 错过多个周期时只补一次
        while self._next_cue_at <= now:
            self._next_cue_at += self.period

        self._emit()
        return 1

    def cancel(self):
        self._next_cue_at = None

    def _emit(self):
        self.cues_emitted += 1
        self.logger.log("alert", "warning", f"LOW NECTAR ALERT! Level at {self._level}% - time to refill")
        try:
            self.cue(self._level)
        except Exception as e:
            self.logger.log("alert", "warning", f"提示播放失败: {e}")
