"""
Monitor 模块 - 喂食器监控循环

架构：
┌─────────────────────────────────────────────────┐
│        FeederMonitorService (监控服务)          │
│  - start() / stop() / scan_now()                │
│  - MonitorLoop 线程驱动定时器                    │
├─────────────────────────────────────────────────┤
│  CountdownScheduler (倒计时)                     │
│  - 每秒减一，到 0 触发一次分析                    │
│  - 同一时刻最多一个分析在进行                     │
├─────────────────────────────────────────────────┤
│  AnalyzerClient (分析端点客户端)                 │
│  - POST {"image": ...} → AnalysisResult         │
│  - 所有失败转换为合成失败结果                     │
├─────────────────────────────────────────────────┤
│  StateStore (状态存储)                           │
│  - 最近一次分析 / 液位 / 历史（20 条）/ 报警       │
├─────────────────────────────────────────────────┤
│  AlertEmitter (报警提示)                          │
│  - 报警且未静音时每 2 秒提示一次                   │
├─────────────────────────────────────────────────┤
│  MonitorConfig (统一配置)                        │
│  - threshold / interval_seconds / alert_muted    │
│  - 自动保存/加载                                 │
└─────────────────────────────────────────────────┘

使用示例：
```python
from hummiguard.vision import CameraCaptureSource
from hummiguard.monitor import create_feeder_monitor_service

monitor = create_feeder_monitor_service(
    capture_source=CameraCaptureSource(camera_index=0),
    config_file="config/monitor_config.json"
)

monitor.start()
monitor.set_threshold(30)
monitor.scan_now()
```
"""

from .clock import SystemClock, VirtualClock
from .models import HistoryEntry, MonitoringState, HISTORY_SIZE
from .monitor_config import (
    MonitorConfig,
    ALLOWED_INTERVALS,
    THRESHOLD_MIN,
    THRESHOLD_MAX,
    validate_threshold,
    validate_interval,
)
from .analyzer_client import AnalyzerClient
from .state_store import StateStore
from .scheduler import CountdownScheduler
from .alert_emitter import AlertEmitter, terminal_bell_cue
from .monitor_service import FeederMonitorService, create_feeder_monitor_service

__all__ = [
    'SystemClock',
    'VirtualClock',
    'HistoryEntry',
    'MonitoringState',
    'HISTORY_SIZE',
    'MonitorConfig',
    'ALLOWED_INTERVALS',
    'THRESHOLD_MIN',
    'THRESHOLD_MAX',
    'validate_threshold',
    'validate_interval',
    'AnalyzerClient',
    'StateStore',
    'CountdownScheduler',
    'AlertEmitter',
    'terminal_bell_cue',
    'FeederMonitorService',
    'create_feeder_monitor_service',
]
