"""日志配置。"""

from __future__ import annotations

import logging

NOISY_LOGGERS = ("urllib3", "requests")


def setup_logging(level: int = logging.INFO) -> None:
    """初始化项目日志配置，第三方库只输出警告以上。"""

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
