"""
AI 模块 - 喂食器液位分析（服务端）

架构：
┌─────────────────────────────────────┐
│          AIService (统一入口)        │
├─────────────────────────────────────┤
│  vision() → VisionAnalyzer          │  ← Anthropic Messages API 代理
├─────────────────────────────────────┤
│  result_parser                      │  ← JSON 提取 + 规范化
├─────────────────────────────────────┤
│  AIConfig (配置层)                   │  ← API Key, 模型配置
└─────────────────────────────────────┘

使用示例：
```python
from hummiguard.ai import create_ai_service, AIConfig

ai = create_ai_service(AIConfig(api_key="sk-ant-..."))
result = ai.vision().analyze(image_base64)
print(result.to_dict())
# {
#   "level": 42,
#   "confidence": "high",
#   "description": "Red feeder, reservoir a bit under half full",
#   "feeder_visible": true
# }
```
"""

from .ai_config import AIConfig
from .ai_service import AIService, create_ai_service
from .result_parser import (
    AnalysisResult,
    Confidence,
    ResultParseError,
    extract_json_object,
    normalize_result,
    parse_result_text,
)
from .vision_analyzer import VisionAnalyzer, AnalysisAPIError, MissingAPIKeyError

__all__ = [
    # 配置
    'AIConfig',

    # 服务
    'AIService',
    'create_ai_service',

    # 分析器
    'VisionAnalyzer',
    'AnalysisAPIError',
    'MissingAPIKeyError',

    # 结果模型
    'AnalysisResult',
    'Confidence',
    'ResultParseError',
    'extract_json_object',
    'normalize_result',
    'parse_result_text',
]
