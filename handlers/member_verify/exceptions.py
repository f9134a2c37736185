"""
入群验证模块异常定义
Member verification module exceptions
"""

from typing import Optional, Union


class MemberVerifyError(Exception):
    """入群验证相关错误基类"""

    def __init__(self, message: str, chat_id: Optional[Union[int, str]] = None, member_id: Optional[int] = None):
        super().__init__(message)
        self.chat_id = chat_id
        self.member_id = member_id


class StoreUnavailableError(MemberVerifyError):
    """redis 未配置"""

    pass


class CommandError(MemberVerifyError):
    """
    命令执行失败，需要回复用户

    keys: 依次格式化并以空行拼接的多语言键
    """

    keys = ()

    def __init__(self, message: str, *keys: str, chat_id=None, member_id=None):
        super().__init__(message, chat_id, member_id)
        if keys:
            self.keys = keys


class NotAdminError(CommandError):
    keys = ("cmd.not_admin",)


class NeedReplyError(CommandError):
    keys = ("cmd.need_reply",)


class BadParameterError(CommandError):
    """参数错误，附带命令帮助"""

    def __init__(self, message: str, help_key: str, chat_id=None, member_id=None):
        super().__init__(message, "cmd.bad_param", help_key, chat_id=chat_id, member_id=member_id)


class LogContext:
    """日志上下文"""

    def __init__(self, chat_id: Union[int, str], member_id: Optional[int] = None,
                 member_fullname: Optional[str] = None, prefix: str = "[验证]"):
        self.chat_id = chat_id
        self.member_id = member_id
        self.member_fullname = member_fullname
        self.prefix = prefix
        self._log_prefix = None

    @property
    def log_prefix(self) -> str:
        """获取格式化的日志前缀"""
        if self._log_prefix is None:
            self._log_prefix = f"{self.prefix} chat {self.chat_id}"
            if self.member_id is not None:
                self._log_prefix += f" member {self.member_id}"
            if self.member_fullname:
                self._log_prefix += f"({self.member_fullname})"
        return self._log_prefix
