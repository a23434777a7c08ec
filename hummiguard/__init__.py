"""
HummiGuard - 蜂鸟喂食器液位监控

模块：
- ai: 液位分析服务（Anthropic Vision 代理 + 结果解析）
- monitor: 监控循环（倒计时、分析客户端、状态、报警）
- vision: 摄像头采集
"""
