"""
Web Application - HummiGuard

使用 Flask 提供液位分析端点和监控控制 RESTful API
"""
import sys
from pathlib import Path

# 添加父目录到 sys.path，以便导入 hummiguard 模块
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from flask import Flask, jsonify, request
from flask_cors import CORS

from hummiguard.ai import create_ai_service, AIConfig, AnalysisAPIError
from hummiguard.common import Config, Logger
from hummiguard.monitor import create_feeder_monitor_service
from hummiguard.vision import CameraCaptureSource


# 创建 Flask 应用
app = Flask(__name__)
CORS(app)

# 全局变量
monitor_service = None
services = {}
logger = Logger(str(PROJECT_ROOT / "logs"))


def init_services():
    """初始化所有服务"""
    global monitor_service, services

    if monitor_service is not None:
        return monitor_service

    env_config = Config()
    log_dir = str(PROJECT_ROOT / "logs")

    # 1. AI 服务（/api/analyze 代理）
    ai_config = AIConfig(
        api_key=env_config.anthropic.api_key,
        base_url=env_config.anthropic.base_url,
        model=env_config.anthropic.model,
        timeout=env_config.anthropic.timeout,
        log_dir=log_dir
    )
    ai_service = create_ai_service(ai_config)

    # 2. 摄像头
    camera = CameraCaptureSource(
        camera_index=env_config.camera.camera_index,
        resolution=env_config.camera.resolution,
        quality=env_config.camera.quality,
        log_dir=log_dir
    )

    # 3. Monitor 服务
    config_file = str(PROJECT_ROOT / "config" / "monitor_config.json")
    monitor_service = create_feeder_monitor_service(
        capture_source=camera,
        config_file=config_file
    )

    services = {
        "ai": ai_service,
        "camera": camera,
        "monitor": monitor_service
    }

    return monitor_service


def get_vision_analyzer():
    """获取 Vision 分析器"""
    init_services()
    return services["ai"].vision()


# ==================== 分析端点 ====================

@app.route('/api/analyze', methods=['POST'])
def analyze():
    """分析一帧图片

    Body: {"image": "<base64 JPEG>"}

    成功返回 {"level", "confidence", "description", "feeder_visible"}，
    失败返回 {"error": "..."} 和对应状态码
    """
    try:
        data = request.get_json(silent=True) or {}
        image = data.get("image")

        if not image:
            return jsonify({"error": "No image provided"}), 400

        # 容错：去掉 data URI 前缀
        if isinstance(image, str) and image.startswith("data:"):
            image = image.split(",", 1)[-1]

        result = get_vision_analyzer().analyze(image)
        return jsonify(result.to_dict())

    except AnalysisAPIError as e:
        return jsonify({"error": e.message}), e.status_code

    except Exception as e:
        logger.log("web", "error", f"analyze 失败: {e}")
        return jsonify({"error": str(e) or "Internal server error"}), 500


# ==================== 监控 API ====================

@app.route('/api/status', methods=['GET'])
def get_status():
    """获取系统状态"""
    monitor = init_services()
    status = monitor.get_status()

    ai_service = services.get("ai")
    if ai_service is not None:
        status["ai"] = ai_service.get_status()

    return jsonify({
        "success": True,
        "data": status
    })


@app.route('/api/monitor/start', methods=['POST'])
def start_monitor():
    """启动监控"""
    monitor = init_services()

    try:
        if monitor.state.running:
            return jsonify({
                "success": False,
                "message": "监控已在运行"
            }), 400

        if monitor.start():
            return jsonify({
                "success": True,
                "message": "监控已启动",
                "first_scan_in": monitor.state.countdown
            })

        return jsonify({
            "success": False,
            "message": monitor.state.error or "监控启动失败"
        }), 500

    except Exception as e:
        return jsonify({
            "success": False,
            "message": str(e)
        }), 500


@app.route('/api/monitor/stop', methods=['POST'])
def stop_monitor():
    """停止监控"""
    monitor = init_services()

    try:
        if monitor.stop():
            return jsonify({
                "success": True,
                "message": "监控已停止"
            })

        return jsonify({
            "success": False,
            "message": "监控未在运行"
        }), 400

    except Exception as e:
        return jsonify({
            "success": False,
            "message": str(e)
        }), 500


@app.route('/api/monitor/scan', methods=['POST'])
def scan_now():
    """立即扫描"""
    monitor = init_services()

    if not monitor.state.running:
        return jsonify({
            "success": False,
            "message": "监控未在运行"
        }), 400

    if monitor.scan_now():
        return jsonify({
            "success": True,
            "message": "扫描已开始"
        })

    return jsonify({
        "success": False,
        "message": "分析进行中"
    }), 409


@app.route('/api/config', methods=['GET'])
def get_config():
    """获取配置"""
    monitor = init_services()

    return jsonify({
        "success": True,
        "data": monitor.config.to_dict()
    })


@app.route('/api/config', methods=['POST'])
def update_config():
    """更新配置

    Body: JSON 格式的配置参数
    {
        "threshold": 25,
        "interval_seconds": 30,
        "alert_muted": false
    }
    """
    monitor = init_services()

    try:
        data = request.get_json() or {}

        # 更新配置（会自动保存到文件）
        monitor.update_config(**data)

        return jsonify({
            "success": True,
            "message": "配置已更新",
            "data": monitor.config.to_dict()
        })

    except Exception as e:
        return jsonify({
            "success": False,
            "message": str(e)
        }), 400


@app.route('/api/alert/mute', methods=['POST'])
def mute_alert():
    """静音开关

    Body（可选）: {"muted": true}，不传则切换
    """
    monitor = init_services()
    data = request.get_json(silent=True) or {}

    if "muted" in data:
        monitor.set_muted(data["muted"])
    else:
        monitor.toggle_mute()

    return jsonify({
        "success": True,
        "data": {"alert_muted": monitor.state.alert_muted}
    })


@app.route('/api/history', methods=['GET'])
def get_history():
    """获取历史读数（最新在前）"""
    monitor = init_services()

    return jsonify({
        "success": True,
        "data": monitor.get_history()
    })


# ==================== 错误处理 ====================

@app.errorhandler(404)
def not_found(error):
    return jsonify({
        "success": False,
        "message": "接口不存在"
    }), 404


@app.errorhandler(500)
def internal_error(error):
    return jsonify({
        "success": False,
        "message": "服务器内部错误"
    }), 500


# ==================== 启动命令 ====================

if __name__ == '__main__':
    # 初始化服务
    init_services()

    server = Config().server

    # 启动 Flask 应用（关闭 reloader，避免监控线程重复启动）
    app.run(host=server.host, port=server.port, debug=server.debug, use_reloader=False)
