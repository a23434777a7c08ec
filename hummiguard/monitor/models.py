"""
Monitor 数据模型
"""
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, Optional, Dict, Any

from hummiguard.ai.result_parser import AnalysisResult, Confidence

# 历史记录容量
HISTORY_SIZE = 20


@dataclass
class HistoryEntry:
    """一条被接受的读数"""
    level: int
    time: datetime
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "time": self.time.isoformat(),
            "confidence": self.confidence.value
        }


@dataclass
class MonitoringState:
    """监控会话状态

    每次启动会话时新建，由 StateStore / CountdownScheduler 读写
    """
    # 用户设置
    threshold: int = 25
    interval_seconds: int = 30
    alert_muted: bool = False

    # 会话状态
    running: bool = False
    analyzing: bool = False
    countdown: int = 0
    alert_active: bool = False

    # 读数
    level: Optional[int] = None
    last_analysis: Optional[AnalysisResult] = None
    history: Deque[HistoryEntry] = field(default_factory=lambda: deque(maxlen=HISTORY_SIZE))

    # 摄像头错误（持续显示，直到下次成功启动）
    error: Optional[str] = None
    started_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "running": self.running,
            "analyzing": self.analyzing,
            "countdown": self.countdown,
            "threshold": self.threshold,
            "interval_seconds": self.interval_seconds,
            "alert_active": self.alert_active,
            "alert_muted": self.alert_muted,
            "level": self.level,
            "last_analysis": self.last_analysis.to_dict() if self.last_analysis else None,
            "history_size": len(self.history),
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None
        }
