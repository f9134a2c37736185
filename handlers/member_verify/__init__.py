"""
入群验证模块
Member verification module

新成员入群后需要在限定时间内发送贴纸，否则按群组设置踢出、禁言或封禁。
管理员通过群内命令修改设置，设置按群组保存在 redis。
"""

from .group import Group, GroupRegistry, registry
from .member_verify import group_message

__all__ = [
    "Group",
    "GroupRegistry",
    "registry",
    "group_message",
]
