"""
Structured logging utilities for photo-wall-service
"""
import json
import traceback
from datetime import datetime, timezone
from .config import config


class WallLogger:
    """
    Structured JSON logger, one object per line on stdout

    Every entry carries timestamp, level, component and environment; keyword
    arguments become top-level fields.
    """

    def __init__(self, component: str = "photo-wall"):
        self.component = component
        self.environment = config.environment
        self.debug_enabled = config.enable_debug_logging

    def _emit(self, level: str, message: str, **fields):
        entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level.upper(),
            'service': self.component,
            'environment': self.environment,
            'message': message
        }
        entry.update(fields)

        print(json.dumps(entry, default=str), flush=True)

    def debug(self, message: str, **fields):
        if self.debug_enabled:
            self._emit('debug', message, **fields)

    def info(self, message: str, **fields):
        self._emit('info', message, **fields)

    def warning(self, message: str, **fields):
        self._emit('warning', message, **fields)

    def error(self, message: str, error: Exception = None, **fields):
        """Log an error, attaching type, message and traceback of ``error``"""
        if error is not None:
            fields['error_type'] = type(error).__name__
            fields['error_message'] = str(error)
            fields['traceback'] = ''.join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        self._emit('error', message, **fields)

    def log_request(self, method: str, path: str, status_code: int, duration_ms: float = None, **fields):
        """One entry per completed HTTP request; 5xx responses log at error level"""
        fields.update(method=method, path=path, status_code=status_code)
        if duration_ms is not None:
            fields['duration_ms'] = round(duration_ms, 2)

        self._emit('error' if status_code >= 500 else 'info', f"{method} {path} {status_code}", **fields)

    def log_pipeline_step(self, step: str, photo_id: str = None, **fields):
        """Milestone in an upload, delete or eviction pipeline"""
        if photo_id:
            fields['photo_id'] = photo_id

        self._emit('info', f"Pipeline step: {step}", step=step, **fields)

    def log_catalog_operation(self, table_name: str, operation: str, success: bool = True, **fields):
        outcome = 'ok' if success else 'failed'
        self._emit(
            'info' if success else 'error',
            f"Catalog {operation} {outcome} ({table_name})",
            table_name=table_name,
            operation=operation,
            success=success,
            **fields
        )

    def log_blob_operation(self, bucket_name: str, operation: str, key: str = None, success: bool = True, **fields):
        if key:
            fields['blob_key'] = key

        outcome = 'ok' if success else 'failed'
        self._emit(
            'info' if success else 'error',
            f"Blob {operation} {outcome} ({bucket_name})",
            bucket_name=bucket_name,
            operation=operation,
            success=success,
            **fields
        )


# Per-component loggers
logger = WallLogger("photo-wall")
photo_logger = WallLogger("photo-service")
catalog_logger = WallLogger("catalog")
blob_logger = WallLogger("blob-store")
events_logger = WallLogger("live-updates")
