"""
状态存储

职责：
1. 记录最近一次分析（无论是否有效）
2. 接受有效读数：更新液位、追加历史、重新计算报警状态
3. 阈值变化时立即重新计算报警状态
"""
import dataclasses
from datetime import datetime
from typing import Callable, List, Optional

from hummiguard.common import Logger
from hummiguard.ai.result_parser import AnalysisResult
from .models import MonitoringState, HistoryEntry
from .monitor_config import validate_threshold, validate_interval


class StateStore:
    """会话状态存储

    只有 apply_reading() 和 set_threshold() 会修改 alert_active
    （会话停止时由 reset_to_idle() 清除）
    """

    def __init__(self, state: MonitoringState,
                 log_dir: Optional[str] = "logs",
                 now: Callable[[], datetime] = datetime.now):
        """
        Args:
            state: 会话状态对象
            log_dir: 日志目录
            now: 时间戳来源
        """
        self.state = state
        self.logger = Logger(log_dir)
        self._now = now

    def apply_reading(self, result: AnalysisResult) -> AnalysisResult:
        """应用一次分析结果

        Args:
            result: 分析结果（可能是合成失败结果）

        Returns:
            附加了时间戳的结果
        """
        stamped = dataclasses.replace(result, timestamp=self._now())
        self.state.last_analysis = stamped

        # 无效读数：不修改液位、历史和报警状态
        if not stamped.is_reading:
            self.logger.log("state", "info", f"无效读数，保持当前状态: {stamped.description}")
            return stamped

        self.state.level = stamped.level
        self.state.history.append(HistoryEntry(
            level=stamped.level,
            time=stamped.timestamp,
            confidence=stamped.confidence
        ))
        self._recompute_alert()

        self.logger.log("state", "info",
                       f"接受读数: {stamped.level}% ({stamped.confidence.value}), "
                       f"报警: {self.state.alert_active}")
        return stamped

    def set_threshold(self, value) -> bool:
        """设置报警阈值并立即重新计算报警状态

        Returns:
            alert_active 是否发生变化

        Raises:
            ValueError: 阈值超出 10-50
        """
        self.state.threshold = validate_threshold(value)
        before = self.state.alert_active
        if self.state.level is not None:
            self._recompute_alert()
        return before != self.state.alert_active

    def set_interval(self, value):
        """设置检查间隔（下次重置倒计时时生效）"""
        self.state.interval_seconds = validate_interval(value)

    def set_muted(self, muted: bool):
        self.state.alert_muted = bool(muted)

    def reset_to_idle(self):
        """会话停止：状态回到空闲"""
        self.state.running = False
        self.state.analyzing = False
        self.state.countdown = 0
        self.state.alert_active = False
        self.state.level = None

    def get_history(self) -> List[HistoryEntry]:
        """历史读数（最新在前）"""
        return list(reversed(self.state.history))

    def _recompute_alert(self):
        self.state.alert_active = self.state.level < self.state.threshold
