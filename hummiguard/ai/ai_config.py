"""
AI 服务配置类
"""
from dataclasses import dataclass


@dataclass
class AIConfig:
    """AI 服务配置对象

    统一管理 Vision 代理的配置
    """
    # Anthropic API 配置
    api_key: str  # Anthropic API Key
    base_url: str = "https://api.anthropic.com/v1"  # API 基础 URL
    model: str = "claude-sonnet-4-20250514"  # Vision 模型
    anthropic_version: str = "2023-06-01"  # API 版本头

    # 生成配置
    max_tokens: int = 1000

    # 超时配置
    timeout: int = 60  # API 请求超时（秒）

    # 日志配置
    log_dir: str = "logs"
