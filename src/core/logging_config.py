"""Настройка логирования.

Модули пишут в logging.getLogger(__name__); вызывающее приложение
один раз вызывает configure_logging(). Уровень по умолчанию берётся
из переменной окружения STABLE_TOKEN_LOG_LEVEL (INFO если не задана).
"""

import logging
import os
import sys
from typing import Optional, Union

LOG_LEVEL_ENV = "STABLE_TOKEN_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Настройка корневого logger пакета src.

    Args:
        level: Уровень логирования; None → STABLE_TOKEN_LOG_LEVEL или INFO

    Returns:
        Logger пакета
    """
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO").upper()

    package_logger = logging.getLogger("src")
    package_logger.setLevel(level)

    if not any(getattr(h, "_stable_token", False) for h in package_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._stable_token = True
        package_logger.addHandler(handler)

    return package_logger
