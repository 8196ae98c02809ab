# src/common/logger.py
"""
Логирование сервиса.

Консоль (цветной текст или JSON), опционально ротируемый файл и отдельный
error.log. К каждой записи добавляется место вызова log_*.
"""

from __future__ import annotations

import inspect
import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from src.common.constants import TypeMsg


DEFAULT_LOGGER_NAME = "location_tracker"

LEVEL_BY_TYPE: dict[TypeMsg, int] = {
    TypeMsg.DEBUG: logging.DEBUG,
    TypeMsg.INFO: logging.INFO,
    TypeMsg.WARNING: logging.WARNING,
    TypeMsg.ERROR: logging.ERROR,
    TypeMsg.CRITICAL: logging.CRITICAL,
}

# Библиотеки, которые на INFO/DEBUG пишут каждый запрос
NOISY_LOGGERS = ("asyncpg", "httpx", "httpcore", "uvicorn.access")

# Файловые хендлеры общие для всех логгеров процесса
_GLOBAL_FILE_HANDLER: logging.Handler | None = None
_GLOBAL_ERROR_HANDLER: logging.Handler | None = None

_LOGGING_INITIALIZED: bool = False

_loggers: dict[str, logging.Logger] = {}


@dataclass(frozen=True)
class LogOptions:
    """Параметры логирования из секции logging конфига."""
    level: str = "INFO"
    format: str = "colored"
    to_file: bool = False
    file_path: str = "logs/app.log"
    max_bytes: int = 10485760
    backup_count: int = 5


# =============================================================================
# ФОРМАТТЕРЫ
# =============================================================================

class JsonFormatter(logging.Formatter):
    """Одна запись = одна строка JSON (для сбора логов)."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Читаемый вывод в терминал."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    GRAY = "\033[90m"

    def _caller(self, record: logging.LogRecord) -> str:
        data = getattr(record, "extra_data", None) or {}
        if not data.get("caller_function"):
            return ""
        return (
            f" {self.GRAY}[{data.get('caller_module')}.{data['caller_function']}() "
            f"{data.get('caller_file')}:{data.get('caller_line')}]{self.RESET}"
        )

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, self.GRAY)
        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            f" {color}[{record.levelname}]{self.RESET}",
            self._caller(record),
            f" {record.getMessage()}",
        ]
        if record.exc_info:
            parts.append("\n" + self.formatException(record.exc_info))
        return "".join(parts)


def _make_formatter(log_format: str) -> logging.Formatter:
    return JsonFormatter() if log_format == "json" else ColoredFormatter()


# =============================================================================
# НАСТРОЙКА ЛОГГЕРОВ
# =============================================================================

def _read_log_options() -> LogOptions:
    """
    LogOptions из settings.logging.

    Если конфиг не загружается или поле неверного типа (MagicMock в тестах),
    берётся значение по умолчанию.
    """
    defaults = LogOptions()
    try:
        from src.config import settings
        cfg = settings.logging
    except Exception:
        return defaults

    raw = {
        "level": cfg.LOG_LEVEL,
        "format": cfg.LOG_FORMAT,
        "to_file": cfg.LOG_TO_FILE,
        "file_path": cfg.LOG_FILE_PATH,
        "max_bytes": cfg.LOG_MAX_BYTES,
        "backup_count": cfg.LOG_BACKUP_COUNT,
    }
    checked = {
        key: value if isinstance(value, type(getattr(defaults, key))) else getattr(defaults, key)
        for key, value in raw.items()
    }
    return LogOptions(**checked)


def _file_handlers(options: LogOptions) -> list[logging.Handler]:
    """Общий файл логов и error.log рядом с ним (создаются один раз на процесс)."""
    global _GLOBAL_FILE_HANDLER, _GLOBAL_ERROR_HANDLER

    path = Path(options.file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    formatter = _make_formatter(options.format)

    if _GLOBAL_FILE_HANDLER is None:
        # Реплики сервиса пишут каждая в свой файл
        suffix = os.getenv("SERVICE_NAME")
        name = f"{path.stem}_{suffix}" if suffix else path.stem
        _GLOBAL_FILE_HANDLER = RotatingFileHandler(
            path.parent / f"{name}.log",
            maxBytes=options.max_bytes,
            backupCount=options.backup_count,
            encoding="utf-8",
        )
        _GLOBAL_FILE_HANDLER.setFormatter(formatter)

    if _GLOBAL_ERROR_HANDLER is None:
        _GLOBAL_ERROR_HANDLER = RotatingFileHandler(
            path.parent / "error.log",
            maxBytes=options.max_bytes,
            backupCount=options.backup_count,
            encoding="utf-8",
        )
        _GLOBAL_ERROR_HANDLER.setLevel(logging.ERROR)
        _GLOBAL_ERROR_HANDLER.setFormatter(formatter)

    return [_GLOBAL_FILE_HANDLER, _GLOBAL_ERROR_HANDLER]


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Логгер с хендлерами по конфигу; повторный вызов возвращает тот же объект."""
    cached = _loggers.get(name)
    if cached is not None:
        return cached

    options = _read_log_options()
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, options.level.upper(), logging.INFO))

    if not logger.handlers:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(_make_formatter(options.format))
        logger.addHandler(console)
        if options.to_file:
            for handler in _file_handlers(options):
                logger.addHandler(handler)
        logger.propagate = False

    _loggers[name] = logger
    return logger


def setup_logging() -> None:
    """Готовит логгер сервиса и приглушает сторонние библиотеки. Идемпотентна."""
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED:
        return
    _LOGGING_INITIALIZED = True

    get_logger(DEFAULT_LOGGER_NAME)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# =============================================================================
# LOG_* ХЕЛПЕРЫ
# =============================================================================

def _get_caller_info() -> dict[str, Any]:
    """Первый фрейм стека вне этого модуля: функция, модуль, файл, строка."""
    frame = inspect.currentframe()
    try:
        caller = frame.f_back if frame else None
        while caller is not None and caller.f_globals.get("__name__") == __name__:
            caller = caller.f_back
        if caller is None:
            return {}
        return {
            "caller_function": caller.f_code.co_name,
            "caller_module": caller.f_globals.get("__name__", "unknown"),
            "caller_file": Path(caller.f_code.co_filename).name,
            "caller_line": caller.f_lineno,
        }
    finally:
        # Фреймы держат локальные переменные всего стека
        del frame


async def log_info(
    message: str,
    *,
    type_msg: TypeMsg = TypeMsg.INFO,
    logger_name: str = DEFAULT_LOGGER_NAME,
    extra: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> None:
    """
    Пишет сообщение с уровнем type_msg.

    Args:
        message: Текст сообщения
        type_msg: Уровень
        logger_name: Имя логгера
        extra: Поля, добавляемые к записи
        exc_info: Приложить трейсбек текущего исключения
    """
    logger = get_logger(logger_name)
    level = LEVEL_BY_TYPE.get(type_msg, logging.INFO)
    logger.log(
        level,
        message,
        extra={"extra_data": {**_get_caller_info(), **(extra or {})}},
        exc_info=exc_info,
    )


async def log_debug(
    message: str,
    logger_name: str = DEFAULT_LOGGER_NAME,
    extra: dict[str, Any] | None = None,
) -> None:
    await log_info(message, type_msg=TypeMsg.DEBUG, logger_name=logger_name, extra=extra)


async def log_warning(
    message: str,
    logger_name: str = DEFAULT_LOGGER_NAME,
    extra: dict[str, Any] | None = None,
) -> None:
    await log_info(message, type_msg=TypeMsg.WARNING, logger_name=logger_name, extra=extra)


async def log_error(
    message: str,
    logger_name: str = DEFAULT_LOGGER_NAME,
    extra: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> None:
    """Ошибка; exc_info=True прикладывает трейсбек (вызывать из except)."""
    await log_info(
        message,
        type_msg=TypeMsg.ERROR,
        logger_name=logger_name,
        extra=extra,
        exc_info=exc_info,
    )
