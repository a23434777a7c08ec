"""
Vision 模块 - 摄像头采集

包含：
- CameraCaptureSource: 摄像头采集源（硬件层）
- CaptureSourceError: 摄像头不可用
"""

from .camera_source import CameraCaptureSource, CaptureSourceError

__all__ = [
    'CameraCaptureSource',
    'CaptureSourceError',
]
