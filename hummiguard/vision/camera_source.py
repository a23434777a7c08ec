"""
摄像头采集源（硬件层）

职责：
1. 打开 / 释放摄像头：open() / release()
2. 单帧采集：capture_base64() - 同步，返回 base64 JPEG

不负责：
- 定时循环
- AI 分析
"""
import base64
import threading
from typing import Optional, Tuple

import cv2

from hummiguard.common import Logger


class CaptureSourceError(Exception):
    """摄像头不可用（无设备 / 无权限）"""


class CameraCaptureSource:
    """摄像头采集源

    设计原则：
    - 只管理硬件操作
    - 打开失败时释放已申请的资源
    - 使用锁保护 capture / release 互斥
    """

    def __init__(self, camera_index: int = 0,
                 resolution: Tuple[int, int] = (1280, 720),
                 quality: int = 80,
                 log_dir: Optional[str] = "logs"):
        """
        Args:
            camera_index: 摄像头索引
            resolution: 目标分辨率 (宽, 高)
            quality: JPEG 质量 (0-100)
            log_dir: 日志目录
        """
        self.camera_index = camera_index
        self.resolution = resolution
        self.quality = quality
        self.logger = Logger(log_dir)
        self.cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self.cap is not None and self.cap.isOpened()

    def open(self):
        """打开摄像头

        Raises:
            CaptureSourceError: 无法打开摄像头
        """
        with self._lock:
            if self.is_open:
                return

            cap = None
            try:
                cap = cv2.VideoCapture(self.camera_index)
                if not cap.isOpened():
                    raise CaptureSourceError(f"无法打开摄像头 (索引: {self.camera_index})")

                # 设置分辨率
                width, height = self.resolution
                cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
                cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

                # 设置缓冲区大小
                cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

            except CaptureSourceError:
                if cap is not None:
                    cap.release()
                raise
            except cv2.error as e:
                if cap is not None:
                    cap.release()
                raise CaptureSourceError(f"摄像头初始化失败: {e}") from e

            self.cap = cap
            self.logger.log("camera", "info", f"摄像头已打开 - 索引: {self.camera_index}")

    def capture_base64(self) -> Optional[str]:
        """采集一帧并编码为 base64 JPEG

        Returns:
            base64 字符串（无 data URI 前缀），失败返回 None
        """
        with self._lock:
            if not self.is_open:
                self.logger.log("camera", "error", "摄像头未打开")
                return None

            try:
                # 清空缓冲区：读取并丢弃2帧
                for _ in range(2):
                    self.cap.read()

                ret, frame = self.cap.read()
                if not ret or frame is None:
                    self.logger.log("camera", "error", "无法从摄像头读取图像")
                    return None

                ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self.quality])
                if not ok:
                    self.logger.log("camera", "error", "JPEG 编码失败")
                    return None

            except cv2.error as e:
                self.logger.log("camera", "error", f"采集图像失败: {e}")
                return None

        return base64.b64encode(buffer.tobytes()).decode("utf-8")

    def release(self):
        """释放摄像头"""
        with self._lock:
            if self.cap is not None:
                self.cap.release()
                self.cap = None
                self.logger.log("camera", "info", "摄像头已释放")

