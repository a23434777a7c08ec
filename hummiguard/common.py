"""
通用工具类
"""
import os
import json
from pathlib import Path
from datetime import datetime
from typing import Optional
from dotenv import load_dotenv
from dataclasses import dataclass

# 项目根目录
BASE_DIR = Path(__file__).parent.parent

# 加载 .env 文件
load_dotenv(os.path.join(BASE_DIR, '.env'))


class Logger:
    """简单日志工具

    log_dir 为 None 时只输出到控制台
    """

    def __init__(self, log_dir: Optional[str]):
        self.log_dir = Path(log_dir) if log_dir else None

    def log(self, module: str, level: str, message: str, **kwargs):
        """记录日志"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = {
            "timestamp": timestamp,
            "module": module,
            "level": level,
            "message": message,
            **kwargs
        }

        # 输出到控制台
        print(f"[{timestamp}] [{module}] {level}: {message}")

        # 输出到文件（可选）
        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            log_file = self.log_dir / f"{datetime.now().strftime('%Y%m%d')}.log"
            try:
                with open(log_file, "a", encoding="utf-8") as f:
                    f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
            except OSError as e:
                print(f"写入日志失败: {e}")


@dataclass
class AnthropicConfig:
    """Anthropic Vision API 配置"""
    api_key: str
    base_url: str = "https://api.anthropic.com/v1"
    model: str = "claude-sonnet-4-20250514"
    timeout: int = 60


@dataclass
class CameraConfig:
    """摄像头配置"""
    camera_index: int = 0
    resolution: tuple = (1280, 720)  # 目标分辨率
    quality: int = 80  # JPEG 质量


@dataclass
class ServerConfig:
    """Web 服务配置"""
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False


class Config:
    """全局配置类（从环境变量读取）"""

    def __init__(self):
        # Anthropic 配置
        self.anthropic = AnthropicConfig(
            api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            base_url=os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com/v1"),
            model=os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514"),
            timeout=int(os.getenv("ANTHROPIC_TIMEOUT", "60"))
        )

        # 摄像头配置
        self.camera = CameraConfig(
            camera_index=int(os.getenv("CAMERA_INDEX", "0")),
            resolution=tuple(map(int, os.getenv("RESOLUTION", "1280,720").split(","))),
            quality=int(os.getenv("IMAGE_QUALITY", "80"))
        )

        # Web 服务配置
        self.server = ServerConfig(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            debug=os.getenv("FLASK_DEBUG", "false").lower() in ('true', '1', 'yes')
        )

        # 项目路径
        self.log_dir = BASE_DIR / "logs"
