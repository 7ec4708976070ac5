"""
Logging configuration.

LOG_FORMAT selects "json" (one JSON object per line) or "console".
LOG_LEVEL defaults to DEBUG when running with DEBUG=True, INFO otherwise.
"""
import json
import logging
import os
from datetime import datetime, timezone


def get_logging_config(debug: bool = False) -> dict:
    """Build the Django LOGGING dict."""
    log_level = os.environ.get('LOG_LEVEL', 'DEBUG' if debug else 'INFO')
    log_format = os.environ.get('LOG_FORMAT', 'console' if debug else 'json')

    if log_format == 'json':
        formatters = {
            'json': {'()': 'backoffice.config.logging_config.JsonFormatter'},
        }
        console_formatter = 'json'
    else:
        formatters = {
            'verbose': {
                'format': '[{asctime}] {levelname} {name} {message}',
                'style': '{',
            },
        }
        console_formatter = 'verbose'

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': formatters,
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': console_formatter,
            },
            'null': {
                'class': 'logging.NullHandler',
            },
        },
        'loggers': {
            '': {
                'handlers': ['console'],
                'level': log_level,
            },
            'django': {
                'handlers': ['console'],
                'level': log_level,
                'propagate': False,
            },
            'django.request': {
                'handlers': ['console'],
                'level': log_level if debug else 'ERROR',
                'propagate': False,
            },
            'django.db.backends': {
                'handlers': ['null'],
                'level': 'INFO',
                'propagate': False,
            },
            'backoffice': {
                'handlers': ['console'],
                'level': log_level,
                'propagate': False,
            },
        },
    }


class JsonFormatter(logging.Formatter):
    """Render records as JSON lines with any `extra` fields attached."""

    STANDARD_ATTRS = {
        'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
        'filename', 'module', 'lineno', 'funcName', 'created',
        'msecs', 'relativeCreated', 'thread', 'threadName',
        'processName', 'process', 'exc_info', 'exc_text', 'stack_info',
        'message', 'taskName',
    }

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        extras = {}
        for key, value in record.__dict__.items():
            if key in self.STANDARD_ATTRS:
                continue
            try:
                json.dumps(value)
                extras[key] = value
            except (TypeError, ValueError):
                extras[key] = str(value)
        if extras:
            entry['extra'] = extras
        return json.dumps(entry, default=str)
