"""
Monitor 配置

所有参数统一为 key:value 格式，保存到 JSON 文件
"""
import json
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from pathlib import Path

# 可选的检查间隔（秒）
ALLOWED_INTERVALS = (10, 30, 60, 120)

# 报警阈值范围（百分比）
THRESHOLD_MIN = 10
THRESHOLD_MAX = 50


def validate_threshold(value) -> int:
    """校验报警阈值

    Raises:
        ValueError: 不是整数或超出 10-50
    """
    if isinstance(value, bool):
        raise ValueError(f"threshold 必须是整数: {value!r}")
    try:
        threshold = int(value)
    except (ValueError, TypeError):
        raise ValueError(f"threshold 必须是整数: {value!r}")

    if not THRESHOLD_MIN <= threshold <= THRESHOLD_MAX:
        raise ValueError(f"threshold 必须在 {THRESHOLD_MIN}-{THRESHOLD_MAX} 之间: {threshold}")
    return threshold


def validate_interval(value) -> int:
    """校验检查间隔

    Raises:
        ValueError: 不在 10/30/60/120 之中
    """
    if isinstance(value, bool):
        raise ValueError(f"interval_seconds 必须是整数: {value!r}")
    try:
        interval = int(value)
    except (ValueError, TypeError):
        raise ValueError(f"interval_seconds 必须是整数: {value!r}")

    if interval not in ALLOWED_INTERVALS:
        raise ValueError(f"interval_seconds 只能是 {ALLOWED_INTERVALS} 之一: {interval}")
    return interval


def _validate_int(name: str, value, minimum: int) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} 必须是整数: {value!r}")
    try:
        number = int(value)
    except (ValueError, TypeError):
        raise ValueError(f"{name} 必须是整数: {value!r}")

    if number < minimum:
        raise ValueError(f"{name} 不能小于 {minimum}: {number}")
    return number


def validate_alert_period(value) -> int:
    """校验报警提示间隔（>= 1 秒）"""
    return _validate_int("alert_period", value, 1)


def validate_first_scan_delay(value) -> int:
    """校验首次扫描倒计时（>= 0 秒）"""
    return _validate_int("first_scan_delay", value, 0)


def validate_request_timeout(value) -> int:
    """校验请求超时（>= 1 秒）"""
    return _validate_int("request_timeout", value, 1)


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes')
    return bool(value)


# 数值字段校验器
_VALIDATORS = {
    "threshold": validate_threshold,
    "interval_seconds": validate_interval,
    "alert_period": validate_alert_period,
    "first_scan_delay": validate_first_scan_delay,
    "request_timeout": validate_request_timeout,
}


@dataclass
class MonitorConfig:
    """Monitor 统一配置

    所有参数都保存在一个 JSON 文件中
    """
    # 用户设置
    threshold: int = 25                 # 报警阈值（%），低于该值报警
    interval_seconds: int = 30          # 检查间隔（秒）
    alert_muted: bool = False           # 是否静音

    # 定时参数
    first_scan_delay: int = 5           # 启动后首次扫描的倒计时（秒）
    alert_period: int = 2               # 报警提示间隔（秒）

    # 分析端点
    analyze_endpoint: str = "http://127.0.0.1:5000/api/analyze"
    request_timeout: int = 60           # 请求超时（秒）

    # 日志目录
    log_dir: Optional[str] = "logs"

    # 配置文件路径（内部使用）
    _config_file: Optional[str] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "threshold": self.threshold,
            "interval_seconds": self.interval_seconds,
            "alert_muted": self.alert_muted,
            "first_scan_delay": self.first_scan_delay,
            "alert_period": self.alert_period,
            "analyze_endpoint": self.analyze_endpoint,
            "request_timeout": self.request_timeout,
            "log_dir": self.log_dir
        }

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any], config_file: str = None) -> 'MonitorConfig':
        """从字典创建配置

        非法的数值字段（阈值、间隔、定时参数）回退为默认值

        Args:
            config_dict: 配置字典
            config_file: 配置文件路径（用于后续自动保存）

        Returns:
            MonitorConfig 实例
        """
        # 辅助函数：校验失败时使用默认值
        def checked(key, default):
            value = config_dict.get(key)
            if value is None:
                return default
            try:
                return _VALIDATORS[key](value)
            except ValueError:
                return default

        return cls(
            threshold=checked("threshold", 25),
            interval_seconds=checked("interval_seconds", 30),
            alert_muted=_to_bool(config_dict.get("alert_muted", False)),
            first_scan_delay=checked("first_scan_delay", 5),
            alert_period=checked("alert_period", 2),
            analyze_endpoint=config_dict.get("analyze_endpoint", "http://127.0.0.1:5000/api/analyze"),
            request_timeout=checked("request_timeout", 60),
            log_dir=config_dict.get("log_dir", "logs"),
            _config_file=config_file
        )

    def save(self):
        """保存配置到文件"""
        if self._config_file:
            config_file = Path(self._config_file)
            config_file.parent.mkdir(parents=True, exist_ok=True)

            with open(config_file, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)

    def update(self, **kwargs):
        """校验、更新配置并自动保存

        任一字段校验失败时不修改任何字段

        Args:
            **kwargs: 要更新的配置项

        Raises:
            ValueError: 字段值非法
        """
        updates = {}
        for key, value in kwargs.items():
            if not hasattr(self, key) or key.startswith("_"):
                continue

            if key in _VALIDATORS:
                value = _VALIDATORS[key](value)
            elif key == "alert_muted":
                value = _to_bool(value)

            updates[key] = value

        for key, value in updates.items():
            setattr(self, key, value)

        # 自动保存
        self.save()

    @classmethod
    def load(cls, config_file: str) -> 'MonitorConfig':
        """从文件加载配置

        Args:
            config_file: 配置文件路径

        Returns:
            MonitorConfig 实例
        """
        config_path = Path(config_file)

        # 如果文件不存在，创建默认配置文件
        if not config_path.exists():
            default_config = cls.get_default()
            default_config._config_file = config_file
            default_config.save()
            return default_config

        # 加载配置
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = json.load(f)

        return cls.from_dict(config_dict, config_file)

    @classmethod
    def get_default(cls) -> 'MonitorConfig':
        """获取默认配置"""
        return cls()
