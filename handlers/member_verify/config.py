"""
入群验证模块配置和常量
Member verification module configuration and constants
"""

from typing import List

# 支持的群组类型
SUPPORT_GROUP_TYPES: List[str] = ["supergroup", "group"]

# 低于该超时时间时提醒管理员 (秒)
LOW_TIMEOUT_NOTICE = 10


class Verdict:
    """验证结果常量"""

    PASSED = "passed"  # 用户响应或管理员放行
    TIMED_OUT = "timed_out"  # 超时
    FAILED = "failed"  # 管理员判定失败
    SUPERSEDED = "superseded"  # 被新的入群验证取代
