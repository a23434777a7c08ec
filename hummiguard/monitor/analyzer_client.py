"""
分析端点客户端

把一帧图片 POST 到 /api/analyze，所有失败都转换为合成失败结果，
不向外抛异常
"""
from typing import Optional

import httpx

from hummiguard.common import Logger
from hummiguard.ai.result_parser import (
    AnalysisResult,
    ResultParseError,
    extract_json_object,
    parse_result_text,
)


class AnalyzerClient:
    """分析端点客户端

    职责：
    1. 发送单帧图片到分析端点（一次请求，不重试）
    2. 从响应体中提取结构化结果
    3. 把网络错误、非 200、超时、解析失败统一转换为合成失败结果
    """

    def __init__(self, endpoint: str, timeout: float = 60,
                 log_dir: Optional[str] = "logs",
                 http_client: Optional[httpx.Client] = None):
        """
        Args:
            endpoint: 分析端点 URL，例如 http://127.0.0.1:5000/api/analyze
            timeout: 请求超时（秒）
            log_dir: 日志目录
            http_client: 自定义 httpx 客户端（测试时注入）
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self.logger = Logger(log_dir)
        self._client = http_client or httpx.Client(timeout=timeout)

    def analyze(self, image_base64: Optional[str]) -> AnalysisResult:
        """分析一帧图片

        Args:
            image_base64: base64 JPEG，采集失败时为 None

        Returns:
            AnalysisResult（失败时 level=-1, confidence=low, feeder_visible=False）
        """
        if not image_base64:
            return self._failure("Failed to capture frame")

        try:
            response = self._client.post(self.endpoint, json={"image": image_base64})

            if response.status_code != 200:
                message = self._error_message(response)
                self.logger.log("analyzer", "warning",
                               f"分析端点返回 {response.status_code}: {message}")
                return self._failure(message)

            result = parse_result_text(response.text)
            self.logger.log("analyzer", "info", f"分析结果: {result.to_dict()}")
            return result

        except httpx.TimeoutException:
            return self._failure("Request timed out")

        except httpx.HTTPError as e:
            return self._failure(str(e) or e.__class__.__name__)

        except ResultParseError as e:
            return self._failure(str(e))

        except Exception as e:
            self.logger.log("analyzer", "error", f"分析请求异常: {e}")
            return self._failure(str(e) or "Unknown error")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """从错误响应体中取出 error 字段"""
        data = extract_json_object(response.text)
        if data:
            error = data.get("error")
            if isinstance(error, dict):
                error = error.get("message")
            if isinstance(error, str) and error:
                return error
        return "API request failed"

    def _failure(self, message: str) -> AnalysisResult:
        self.logger.log("analyzer", "warning", f"分析失败: {message}")
        return AnalysisResult.failure(f"Error: {message}")

    def close(self):
        """关闭 HTTP 客户端"""
        self._client.close()
