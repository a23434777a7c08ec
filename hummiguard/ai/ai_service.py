"""
AI 服务 - 统一的 AI 功能入口

职责：
1. 管理 Vision 分析器
2. 共享配置和 HTTP 客户端
3. 提供统一的入口
"""
import threading
from typing import Optional

from hummiguard.common import Logger
from .ai_config import AIConfig
from .vision_analyzer import VisionAnalyzer


class AIService:
    """AI 服务（统一入口）

    所有分析器共享同一份配置（API Key、Base URL、模型）
    """

    def __init__(self, config: AIConfig):
        """
        Args:
            config: AI 配置对象
        """
        self.config = config
        self.logger = Logger(config.log_dir)

        # Vision 分析器（延迟初始化）
        self._vision_analyzer: Optional[VisionAnalyzer] = None

        self.logger.log("ai", "info", f"AIService 初始化 - provider: anthropic, model: {config.model}")

    def vision(self) -> VisionAnalyzer:
        """获取 Vision 分析器

        Returns:
            VisionAnalyzer 实例
        """
        if self._vision_analyzer is None:
            self._vision_analyzer = VisionAnalyzer(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                model=self.config.model,
                timeout=self.config.timeout,
                max_tokens=self.config.max_tokens,
                anthropic_version=self.config.anthropic_version,
                log_dir=self.config.log_dir
            )

        return self._vision_analyzer

    def get_status(self) -> dict:
        """获取服务状态"""
        return {
            "provider": "anthropic",
            "model": self.config.model,
            "api_key_configured": bool(self.config.api_key),
            "vision_available": self._vision_analyzer is not None
        }


# ==================== 工厂函数 ====================

_service_instance: Optional[AIService] = None
_service_lock = threading.Lock()


def create_ai_service(config: AIConfig) -> AIService:
    """创建 AI 服务（进程内单例）

    Args:
        config: AI 配置对象

    Returns:
        AIService 实例
    """
    global _service_instance
    if _service_instance is None:
        with _service_lock:
            if _service_instance is None:
                _service_instance = AIService(config)
    return _service_instance
