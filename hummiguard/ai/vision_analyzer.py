"""
Vision 分析器

基于 Anthropic Messages API 的喂食器液位分析
"""
from typing import Dict, Any, Optional

import httpx

from hummiguard.common import Logger
from .result_parser import AnalysisResult, Confidence, ResultParseError, parse_result_text


class AnalysisAPIError(Exception):
    """上游 API 调用失败

    status_code 会原样返回给 /api/analyze 的调用方
    """

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MissingAPIKeyError(AnalysisAPIError):
    """服务端未配置 API Key"""

    def __init__(self, message: str = "API key not configured"):
        super().__init__(message, status_code=500)


class VisionAnalyzer:
    """Vision 分析器

    职责：
    1. 封装 Anthropic Messages API 调用
    2. 发送图片 + 固定 Prompt
    3. 从模型输出中提取 JSON 并规范化

    设计原则：
    - 单一职责：只负责图像分析
    - 无状态：不保存分析历史
    - 不重试：失败直接交给调用方
    """

    def __init__(self, api_key: str, base_url: str, model: str,
                 timeout: int = 60, max_tokens: int = 1000,
                 anthropic_version: str = "2023-06-01",
                 log_dir: Optional[str] = "logs",
                 http_client: Optional[httpx.Client] = None):
        """
        Args:
            api_key: Anthropic API Key
            base_url: API 基础 URL
            model: 模型名称
            timeout: 请求超时（秒）
            max_tokens: 最大输出 token 数
            anthropic_version: API 版本头
            log_dir: 日志目录
            http_client: 自定义 httpx 客户端（测试时注入）
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.anthropic_version = anthropic_version
        self.logger = Logger(log_dir)
        self._http_client = http_client

    def analyze(self, image_base64: str) -> AnalysisResult:
        """分析图片

        Args:
            image_base64: base64 编码的 JPEG（不带 data URI 前缀）

        Returns:
            AnalysisResult；模型输出无法解析时返回 level=-1 的兜底结果

        Raises:
            MissingAPIKeyError: 未配置 API Key
            AnalysisAPIError: 上游返回非 2xx
            httpx.HTTPError: 网络错误
        """
        if not self.api_key:
            self.logger.log("ai", "error", "未配置 ANTHROPIC_API_KEY")
            raise MissingAPIKeyError()

        self.logger.log("ai", "info", f"开始分析图片: {len(image_base64)} 字符")

        # 1. 构建 Prompt
        prompt = self._build_prompt()

        # 2. 调用 API
        text_content = self._call_api(prompt, image_base64)

        # 3. 解析响应
        analysis = self._parse_response(text_content)

        self.logger.log("ai", "info", f"分析完成: {analysis.to_dict()}")
        return analysis

    def _build_prompt(self) -> str:
        """构建分析 Prompt

        Returns:
            Prompt 字符串
        """
        return """You are analyzing an image from a hummingbird feeder monitoring system called HummiGuard.

Your task: Determine the nectar/sugar water fill level in any visible feeder or container.

IMPORTANT: Respond ONLY with a valid JSON object, no other text. Use this exact format:
{
  "level": <number 0-100 representing percentage full>,
  "confidence": "<high|medium|low>",
  "description": "<brief 1-sentence description of what you see>",
  "feeder_visible": <true|false>
}

Guidelines:
- If you see a hummingbird feeder, estimate how full the nectar reservoir is (0-100%)
- If you see any container with liquid that could be being monitored, estimate its fill level
- If no feeder or relevant container is visible, set feeder_visible to false and level to -1
- Consider the liquid line, empty space above it, and overall container capacity
- Red or pink tinted liquid/glass is common for hummingbird feeders

Respond with ONLY the JSON object."""

    def _post(self, url: str, data: Dict[str, Any], headers: Dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return self._http_client.post(url, json=data, headers=headers, timeout=self.timeout)
        return httpx.post(url, json=data, headers=headers, timeout=self.timeout)

    def _call_api(self, prompt: str, image_base64: str) -> str:
        """调用 Anthropic Messages API

        Args:
            prompt: 提示词
            image_base64: base64 编码的图片

        Returns:
            模型返回的文本内容

        Raises:
            AnalysisAPIError: API 返回非 2xx
        """
        url = f"{self.base_url}/messages"

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.anthropic_version,
            "Content-Type": "application/json"
        }

        data = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": "image/jpeg",
                                "data": image_base64
                            }
                        },
                        {
                            "type": "text",
                            "text": prompt
                        }
                    ]
                }
            ]
        }

        response = self._post(url, data, headers)

        if not response.is_success:
            message = self._error_message(response)
            self.logger.log("ai", "error", f"Anthropic API 错误 ({response.status_code}): {message}")
            raise AnalysisAPIError(message, status_code=response.status_code)

        response_json = response.json()

        # 提取第一个文本块
        for block in response_json.get("content") or []:
            if block.get("type") == "text":
                return block.get("text") or ""

        return ""

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            error = response.json().get("error")
        except ValueError:
            return "API request failed"

        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        return "API request failed"

    def _parse_response(self, text_content: str) -> AnalysisResult:
        """解析模型输出

        Args:
            text_content: 模型返回的文本

        Returns:
            解析后的分析结果
        """
        try:
            return parse_result_text(text_content)

        except ResultParseError as e:
            # 返回默认值
            self.logger.log("ai", "warning", f"无法解析 JSON ({e})，使用默认值: {text_content[:100]}")
            return AnalysisResult(
                level=-1,
                confidence=Confidence.LOW,
                description="Could not parse AI response",
                feeder_visible=False
            )
