"""
分析结果模型与解析

职责：
1. AnalysisResult 数据模型（Vision 端点与监控客户端共用）
2. 从自由文本中提取第一个合法的 JSON 对象
3. 将 JSON 字典规范化为 AnalysisResult
"""
import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional


class Confidence(Enum):
    """置信度"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ResultParseError(ValueError):
    """无法从响应中解析出分析结果"""


@dataclass
class AnalysisResult:
    """一次分析的结果

    level 为 -1 表示未检测到喂食器或分析失败
    timestamp 由状态存储附加，分析器不填写
    """
    level: int
    confidence: Confidence
    description: str
    feeder_visible: bool
    timestamp: Optional[datetime] = None

    @property
    def is_reading(self) -> bool:
        """是否是有效读数（喂食器可见且液位 >= 0）"""
        return self.feeder_visible and self.level >= 0

    @classmethod
    def failure(cls, description: str) -> 'AnalysisResult':
        """构造合成失败结果"""
        return cls(
            level=-1,
            confidence=Confidence.LOW,
            description=description,
            feeder_visible=False
        )

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        data = {
            "level": self.level,
            "confidence": self.confidence.value,
            "description": self.description,
            "feeder_visible": self.feeder_visible
        }
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp.isoformat()
        return data


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """提取文本中第一个合法的 JSON 对象

    从每个 "{" 开始尝试解码，返回第一个成功解码的对象；
    找不到时返回 None

    Args:
        text: 任意文本（模型输出或 HTTP 响应体）

    Returns:
        解码后的字典，或 None
    """
    if not text:
        return None

    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = decoder.raw_decode(text, start)
            if isinstance(obj, dict):
                return obj
        except json.JSONDecodeError:
            pass
        start = text.find("{", start + 1)

    return None


def _to_level(value) -> int:
    # bool 是 int 的子类，需要排除
    if isinstance(value, bool):
        raise ResultParseError(f"level 类型错误: {value!r}")
    if isinstance(value, (int, float)):
        try:
            level = int(round(value))
        except (ValueError, OverflowError):
            raise ResultParseError(f"level 数值无效: {value!r}")
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        level = int(value.strip())
    else:
        raise ResultParseError(f"level 类型错误: {value!r}")

    if level < 0:
        return -1
    return min(level, 100)


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def normalize_result(data: Dict[str, Any]) -> AnalysisResult:
    """将 JSON 字典规范化为 AnalysisResult

    Args:
        data: 解码后的 JSON 对象

    Returns:
        AnalysisResult 对象

    Raises:
        ResultParseError: 缺少 level 或 level 无法识别
    """
    if "level" not in data:
        raise ResultParseError("响应中缺少 level 字段")

    level = _to_level(data["level"])

    confidence_value = str(data.get("confidence", "")).strip().lower()
    try:
        confidence = Confidence(confidence_value)
    except ValueError:
        confidence = Confidence.LOW

    description = data.get("description")
    if description is None:
        description = ""

    return AnalysisResult(
        level=level,
        confidence=confidence,
        description=str(description),
        feeder_visible=_to_bool(data.get("feeder_visible", False))
    )


def parse_result_text(text: str) -> AnalysisResult:
    """从文本中提取并规范化分析结果

    Raises:
        ResultParseError: 找不到 JSON 对象或对象不合法
    """
    data = extract_json_object(text)
    if data is None:
        raise ResultParseError("No JSON found in response")
    return normalize_result(data)
