"""外部命令执行：流式转发输出、超时强制终止。"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from typing import IO, Optional, Sequence

from vips_action.core.exceptions import ProcessExecutionError, ProcessExitError, ProcessTimeoutError

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10_000
_READER_JOIN_SECONDS = 2.0


def shell_quote(value: str) -> str:
    """用单引号包裹参数，内部的单引号替换为 '\\''。

    单引号内 shell 不解释任何字符，空格、$、反引号等都按字面传递。
    """

    return "'" + value.replace("'", "'\\''") + "'"


class ProcessRunner:
    """同步执行外部命令，一次只运行一个子进程。"""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or LOGGER

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        shell: bool = False,
    ) -> int:
        """执行命令并返回退出码 0；失败时抛出 ProcessExecutionError 的子类。

        shell=True 时 args 视为已转义的复合参数，拼接后交给 shell 执行，
        调用方负责用 shell_quote 处理路径。
        """

        if shell:
            popen_args: str | list[str] = " ".join([command, *args])
        else:
            popen_args = [command, *args]

        self.logger.debug("执行命令: %s", popen_args)
        try:
            process = subprocess.Popen(
                popen_args,
                shell=shell,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                start_new_session=os.name == "posix",
            )
        except OSError as exc:
            raise ProcessExecutionError(f"无法启动 {command}: {exc}") from exc

        readers = [
            self._start_reader(process.stdout, logging.INFO),
            self._start_reader(process.stderr, logging.WARNING),
        ]

        try:
            exit_code = process.wait(timeout=timeout_ms / 1000.0)
        except subprocess.TimeoutExpired:
            self._kill(process)
            self._join(readers)
            raise ProcessTimeoutError(command, timeout_ms) from None

        self._join(readers)
        if exit_code != 0:
            raise ProcessExitError(command, exit_code)
        return exit_code

    def _start_reader(self, stream: Optional[IO[str]], level: int) -> Optional[threading.Thread]:
        if stream is None:
            return None

        def forward() -> None:
            with stream:
                for line in iter(stream.readline, ""):
                    text = line.rstrip()
                    if text:
                        self.logger.log(level, text)

        thread = threading.Thread(target=forward, daemon=True)
        thread.start()
        return thread

    @staticmethod
    def _join(readers: Sequence[Optional[threading.Thread]]) -> None:
        for reader in readers:
            if reader is not None:
                reader.join(timeout=_READER_JOIN_SECONDS)

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        # shell=True 时需要结束整个进程组，否则 vips 子进程会继续占用管道。
        if os.name == "posix":
            try:
                os.killpg(process.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
        else:
            process.kill()
        process.wait()
