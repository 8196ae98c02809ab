# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class MotionType(str, Enum):
    """Состояния движения устройства (properties.motion в Overland)."""
    STATIONARY = "stationary"
    WALKING = "walking"
    RUNNING = "running"
    CYCLING = "cycling"
    DRIVING = "driving"


class OutputFormat(str, Enum):
    """Форматы выдачи GET /api/locations."""
    GEOJSON = "geojson"
    JSON = "json"
    JSONL = "jsonl"


class ApiErrorCode(str, Enum):
    """Коды ошибок в ответах API."""
    MISSING_AUTHORIZATION_HEADER = "missing_authorization_header"
    INVALID_AUTHORIZATION_FORMAT = "invalid_authorization_format"
    INVALID_TOKEN = "invalid_token"
    INVALID_JSON = "invalid_json"
    VALIDATION_FAILED = "validation_failed"
    INVALID_QUERY_PARAMS = "invalid_query_params"
    DATABASE_ERROR = "database_error"


# Устройство по умолчанию, если клиент не прислал device_id
DEFAULT_DEVICE_ID = "unknown"

# Лимит выдачи точек по умолчанию
DEFAULT_LOCATIONS_LIMIT = 1000
