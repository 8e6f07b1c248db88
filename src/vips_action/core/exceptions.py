"""项目内使用的自定义异常定义。"""

from __future__ import annotations

from typing import Optional


class VipsActionError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(VipsActionError):
    """配置不合法时抛出。"""


class UnsupportedFormatError(InvalidConfigurationError):
    """文件扩展名没有对应的 vips 保存模式。"""


class ProcessExecutionError(VipsActionError):
    """外部压缩进程执行失败。"""

    def __init__(self, message: str, exit_code: Optional[int] = None, timed_out: bool = False) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.timed_out = timed_out


class ProcessExitError(ProcessExecutionError):
    """进程以非零退出码结束。"""

    def __init__(self, command: str, exit_code: int) -> None:
        super().__init__(f"{command} 退出码 {exit_code}", exit_code=exit_code)


class ProcessTimeoutError(ProcessExecutionError):
    """进程超时被强制终止。"""

    def __init__(self, command: str, timeout_ms: int) -> None:
        super().__init__(f"{command} 超时 ({timeout_ms} ms)，已终止", timed_out=True)
        self.timeout_ms = timeout_ms


class RemoteApiError(VipsActionError):
    """GitHub API 调用失败。"""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
