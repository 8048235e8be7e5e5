"""
错误类型定义

解析层面的错误（文件名不匹配、无法识别的表格属性、无法解析的日期）
在本地被忽略，不会抛出；这里只定义需要上报给调用方的错误。
"""


class BuildLogError(Exception):
    """构建日志错误基类"""
    pass


class ConfigError(BuildLogError):
    """配置文件错误"""
    pass


class WorkspaceError(BuildLogError):
    """工作区未设置或不可用"""
    pass


class ProjectNotFoundError(BuildLogError, FileNotFoundError):
    """要导入/解析的 Markdown 文件不存在"""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.args[0]}: {self.path}"
        return str(self.args[0])


class ExportError(BuildLogError):
    """导出（HTML / PDF）失败"""
    pass


def describe_error(exc: BaseException) -> str:
    """
    生成包含嵌套原因的错误描述

    Args:
        exc: 异常对象

    Returns:
        形如 "外层消息 (caused by: 内层消息)" 的字符串
    """
    message = str(exc) or type(exc).__name__
    cause = exc.__cause__ or exc.__context__
    seen = {id(exc)}
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        cause_message = str(cause) or type(cause).__name__
        if cause_message not in message:
            message += f" (caused by: {cause_message})"
        cause = cause.__cause__ or cause.__context__
    return message
