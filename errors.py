"""BaseBot 异常定义"""


class BaseBotError(Exception):
    """所有 BaseBot 异常的基类"""


class RegistrationError(BaseBotError):
    """插件或预处理器不符合接口约定，注册时拒绝"""

    def __init__(self, unit, reason: str):
        self.unit = unit
        self.reason = reason
        name = getattr(unit, "name", None) or type(unit).__name__
        super().__init__(f"无法注册 {name}: {reason}")


class MetadataUnavailableError(BaseBotError):
    """无法从客户端获取群元数据"""

    def __init__(self, group_id: str, cause: Exception | None = None):
        self.group_id = group_id
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"获取群 {group_id} 元数据失败{detail}")


class LoggedOutError(BaseBotError):
    """会话已登出，无法恢复，只能结束进程"""
