"""
喂食器监控服务

使用统一配置文件，支持自动保存/加载
"""
import threading
from datetime import datetime
from typing import Optional, Dict, Any, Callable, List, Tuple

from hummiguard.common import Logger
from hummiguard.ai.result_parser import AnalysisResult
from hummiguard.vision.camera_source import CaptureSourceError
from .analyzer_client import AnalyzerClient
from .alert_emitter import AlertEmitter
from .clock import SystemClock
from .models import MonitoringState
from .monitor_config import MonitorConfig
from .scheduler import CountdownScheduler
from .state_store import StateStore

CAMERA_ERROR_MESSAGE = "Camera access denied. Please allow camera permissions and refresh."


class FeederMonitorService:
    """喂食器监控服务

    职责：
    1. 会话管理：start() / stop()
    2. 分析周期：倒计时 → 采集 → 分析 → 更新状态 → 报警
    3. 用户设置：阈值、间隔、静音（自动保存到配置文件）

    并发模型：
    - MonitorLoop 线程按时钟驱动倒计时和报警两个定时器
    - 每个分析周期交给 dispatch 执行（默认新建 AnalysisCycle 线程）
    - 同一时刻最多一个分析请求在进行
    """

    # 定时器轮询间隔（秒）
    POLL_INTERVAL = 0.25

    # 可在运行中修改的配置项
    RUNTIME_SETTINGS = ("threshold", "interval_seconds", "alert_muted",
                        "alert_period", "first_scan_delay")

    def __init__(self,
                 capture_source,
                 analyzer_client: AnalyzerClient,
                 config: MonitorConfig,
                 clock=None,
                 cue: Optional[Callable[[Optional[int]], None]] = None,
                 dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
                 drive_timers: bool = True):
        """
        Args:
            capture_source: 采集源（open / capture_base64 / release）
            analyzer_client: 分析端点客户端
            config: Monitor 配置对象
            clock: 时钟（默认 SystemClock）
            cue: 报警提示回调
            dispatch: 分析周期执行方式（默认后台线程）
            drive_timers: 是否启动 MonitorLoop 线程（测试时关闭，手动 poll()）
        """
        self.camera = capture_source
        self.analyzer = analyzer_client
        self.config = config
        self.clock = clock or SystemClock()
        self.logger = Logger(config.log_dir)

        self._lock = threading.RLock()
        self._dispatch = dispatch or self._dispatch_thread
        self._drive_timers = drive_timers

        # 会话状态
        self.state = self._new_state()
        self.store = StateStore(self.state, log_dir=config.log_dir)

        # 定时器
        self.scheduler = CountdownScheduler(
            on_zero=self._on_countdown_zero,
            clock=self.clock,
            log_dir=config.log_dir
        )
        self.alert = AlertEmitter(
            cue=cue,
            clock=self.clock,
            period=config.alert_period,
            log_dir=config.log_dir
        )

        # 会话编号：用于丢弃已停止会话的迟到结果
        self._session_id = 0
        self._inflight_session: Optional[int] = None

        # 当前 MonitorLoop 线程及其停止信号
        self._loop: Optional[Tuple[threading.Thread, threading.Event]] = None
        self.cycles_completed = 0

        self.logger.log("monitor", "info",
                       f"FeederMonitorService 初始化 - 间隔: {config.interval_seconds}s, "
                       f"阈值: {config.threshold}%")

    def _new_state(self) -> MonitoringState:
        return MonitoringState(
            threshold=self.config.threshold,
            interval_seconds=self.config.interval_seconds,
            alert_muted=self.config.alert_muted
        )

    # ==================== 会话管理 ====================

    def start(self) -> bool:
        """启动监控会话

        Returns:
            是否启动成功（已在运行或摄像头不可用时返回 False）
        """
        with self._lock:
            if self.state.running:
                self.logger.log("monitor", "warning", "监控已在运行")
                return False

            state = self._new_state()
            self._session_id += 1
            self.state = state
            self.store = StateStore(state, log_dir=self.config.log_dir)

            try:
                self.camera.open()
            except CaptureSourceError as e:
                self.camera.release()
                state.error = CAMERA_ERROR_MESSAGE
                self.logger.log("monitor", "error", f"摄像头不可用: {e}")
                return False

            state.running = True
            state.started_at = datetime.now()
            self.scheduler.arm(state, self.config.first_scan_delay)
            self.alert.sync(state)

            if self._drive_timers:
                self._start_loop()

            self.logger.log("monitor", "info", f"监控已启动（会话 {self._session_id}）")

        return True

    def stop(self) -> bool:
        """停止监控会话

        无论之前处于什么状态，结束后 running=False, alert_active=False, countdown=0

        Returns:
            之前是否在运行
        """
        with self._lock:
            was_running = self.state.running

            self.scheduler.cancel()
            self.store.reset_to_idle()
            self.alert.sync(self.state)

            # 同步释放摄像头
            self.camera.release()

            loop_thread = self._detach_loop()

            if was_running:
                self.logger.log("monitor", "info", f"监控已停止（会话 {self._session_id}）")
            else:
                self.logger.log("monitor", "warning", "监控未在运行")

        # 在锁外等待旧线程退出
        self._join_loop(loop_thread)
        return was_running

    # ==================== 分析周期 ====================

    def scan_now(self) -> bool:
        """立即扫描

        Returns:
            是否启动了分析周期
        """
        with self._lock:
            return self.scheduler.scan_now()

    def poll(self):
        """驱动两个定时器（MonitorLoop 或测试调用）"""
        with self._lock:
            self.scheduler.poll()
            self.alert.poll()

    def _on_countdown_zero(self) -> bool:
        """倒计时到 0：启动一次分析周期"""
        if self._inflight_session is not None:
            self.logger.log("monitor", "info", "上一个分析请求尚未返回，等待")
            return False

        session_id = self._session_id
        self.state.analyzing = True
        self._inflight_session = session_id

        self.logger.log("monitor", "info", "开始分析周期")
        self._dispatch(lambda: self._run_cycle(session_id))
        return True

    def _run_cycle(self, session_id: int):
        """执行分析周期（采集 + 分析）"""
        try:
            image_base64 = self.camera.capture_base64()
            result = self.analyzer.analyze(image_base64)
        except Exception as e:
            self.logger.log("monitor", "error", f"分析周期异常: {e}")
            result = AnalysisResult.failure(f"Error: {e}")

        self._finish_cycle(session_id, result)

    def _finish_cycle(self, session_id: int, result: AnalysisResult):
        """分析周期结束：更新状态、重置倒计时、同步报警"""
        with self._lock:
            self._inflight_session = None

            if session_id != self._session_id or not self.state.running:
                self.logger.log("monitor", "info", f"会话 {session_id} 已停止，丢弃分析结果")
                # 新会话可能正停在 0 等待
                self.scheduler.check_trigger()
                return

            self.store.apply_reading(result)
            self.state.analyzing = False
            self.scheduler.reset(self.state.interval_seconds)
            self.alert.sync(self.state)
            self.cycles_completed += 1

    @staticmethod
    def _dispatch_thread(job: Callable[[], None]):
        threading.Thread(target=job, name="AnalysisCycle", daemon=True).start()

    # ==================== 用户设置 ====================

    def set_threshold(self, value):
        """设置报警阈值（立即重新计算报警状态）

        Raises:
            ValueError: 阈值超出 10-50
        """
        with self._lock:
            self.config.update(threshold=value)
            self.store.set_threshold(self.config.threshold)
            self.alert.sync(self.state)

    def set_interval(self, value):
        """设置检查间隔（下次重置倒计时时生效）

        Raises:
            ValueError: 不在 10/30/60/120 之中
        """
        with self._lock:
            self.config.update(interval_seconds=value)
            self.store.set_interval(self.config.interval_seconds)

    def set_muted(self, muted: bool):
        """设置静音（跨报警周期保持，直到用户切换）"""
        with self._lock:
            self.config.update(alert_muted=muted)
            self.store.set_muted(self.config.alert_muted)
            self.alert.sync(self.state)

    def toggle_mute(self) -> bool:
        """切换静音

        Returns:
            切换后的静音状态
        """
        with self._lock:
            self.set_muted(not self.state.alert_muted)
            return self.state.alert_muted

    def update_config(self, **kwargs):
        """更新配置并自动保存到文件

        只接受运行中即可生效的字段（RUNTIME_SETTINGS）：
        - threshold / interval_seconds / alert_muted 同步到当前会话
        - alert_period 立即用于报警提示
        - first_scan_delay 在下次启动时生效

        Raises:
            ValueError: 字段不可运行时修改或值非法（此时不修改任何字段）
        """
        unsupported = sorted(set(kwargs) - set(self.RUNTIME_SETTINGS))
        if unsupported:
            raise ValueError(f"不支持运行时修改的配置项: {unsupported}")

        with self._lock:
            self.config.update(**kwargs)

            if "threshold" in kwargs:
                self.store.set_threshold(self.config.threshold)
            if "interval_seconds" in kwargs:
                self.store.set_interval(self.config.interval_seconds)
            if "alert_muted" in kwargs:
                self.store.set_muted(self.config.alert_muted)
            if "alert_period" in kwargs:
                self.alert.period = self.config.alert_period

            self.alert.sync(self.state)

        self.logger.log("monitor", "info", f"配置已更新: {list(kwargs.keys())}")

    # ==================== 定时器线程 ====================

    @property
    def loop_thread(self) -> Optional[threading.Thread]:
        """当前 MonitorLoop 线程（未启动时为 None）"""
        return self._loop[0] if self._loop is not None else None

    def _start_loop(self):
        """启动 MonitorLoop（调用方持有锁）

        每个线程有自己的停止信号，旧线程即使尚未退出也不会影响新线程
        """
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._monitor_loop,
            args=(stop_event,),
            name="MonitorLoop",
            daemon=True
        )
        self._loop = (thread, stop_event)
        thread.start()

    def _detach_loop(self) -> Optional[threading.Thread]:
        """通知当前 MonitorLoop 退出（调用方持有锁）

        Returns:
            需要等待退出的线程
        """
        loop, self._loop = self._loop, None
        if loop is None:
            return None

        thread, stop_event = loop
        stop_event.set()
        return thread

    @staticmethod
    def _join_loop(thread: Optional[threading.Thread]):
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)

    def _monitor_loop(self, stop_event: threading.Event):
        """定时器循环（后台线程）"""
        while not stop_event.is_set():
            try:
                self.poll()
            except Exception as e:
                self.logger.log("monitor", "error", f"监控循环异常: {e}")
            stop_event.wait(self.POLL_INTERVAL)

    # ==================== 状态查询 ====================

    def get_history(self) -> List[Dict[str, Any]]:
        """历史读数（最新在前）"""
        with self._lock:
            return [entry.to_dict() for entry in self.store.get_history()]

    def get_status(self) -> Dict[str, Any]:
        """获取服务状态"""
        with self._lock:
            return {
                "session": self.state.to_dict(),
                "cycles_completed": self.cycles_completed,
                "alert_sounding": self.alert.active,
                "cues_emitted": self.alert.cues_emitted,
                "config": self.config.to_dict()
            }

    def shutdown(self):
        """关闭服务"""
        self.logger.log("monitor", "info", "关闭 FeederMonitorService")
        self.stop()
        self.analyzer.close()


# ==================== 工厂函数 ====================

def create_feeder_monitor_service(capture_source,
                                  analyzer_client: Optional[AnalyzerClient] = None,
                                  config_file: str = "config/monitor_config.json",
                                  **kwargs) -> FeederMonitorService:
    """创建喂食器监控服务

    Args:
        capture_source: 采集源
        analyzer_client: 分析端点客户端（默认按配置创建）
        config_file: 配置文件路径
        **kwargs: 透传给 FeederMonitorService

    Returns:
        FeederMonitorService 实例
    """
    # 加载配置（如果文件不存在会创建默认配置）
    config = MonitorConfig.load(config_file)

    if analyzer_client is None:
        analyzer_client = AnalyzerClient(
            endpoint=config.analyze_endpoint,
            timeout=config.request_timeout,
            log_dir=config.log_dir
        )

    return FeederMonitorService(
        capture_source=capture_source,
        analyzer_client=analyzer_client,
        config=config,
        **kwargs
    )
