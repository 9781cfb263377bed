"""Structured logging configuration for the radio and traffic aggregator API."""

import logging
import logging.config
import os
from datetime import datetime
from pathlib import Path
from typing import Optional
import json


class StructuredFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs."""

    # Attributes every LogRecord carries; anything else came in through ``extra``
    STANDARD_FIELDS = {
        'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
        'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
        'thread', 'threadName', 'processName', 'process', 'getMessage', 'exc_info',
        'exc_text', 'stack_info', 'message', 'taskName'
    }

    def __init__(self, include_extra_fields: bool = True):
        """Initialize the structured formatter.

        Args:
            include_extra_fields: Whether to include extra fields from log records
        """
        super().__init__()
        self.include_extra_fields = include_extra_fields

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON.

        Args:
            record: Log record to format

        Returns:
            JSON formatted log string
        """
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'process_id': os.getpid()
        }

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        if self.include_extra_fields:
            extra_fields = {}
            for key, value in record.__dict__.items():
                if key in self.STANDARD_FIELDS or key.startswith('_'):
                    continue
                # Convert non-serializable objects to strings
                try:
                    json.dumps(value)
                    extra_fields[key] = value
                except (TypeError, ValueError):
                    extra_fields[key] = str(value)

            if extra_fields:
                log_entry['extra'] = extra_fields

        return json.dumps(log_entry, ensure_ascii=False)


class ContextAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call ``extra`` with the adapter context."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


class RequestResponseFilter(logging.Filter):
    """Filter for API request/response logging."""

    def filter(self, record: logging.LogRecord) -> bool:
        return hasattr(record, 'request_id') or hasattr(record, 'endpoint')


class PerformanceFilter(logging.Filter):
    """Filter for performance-related logging."""

    def filter(self, record: logging.LogRecord) -> bool:
        return (hasattr(record, 'duration') or
                hasattr(record, 'batch_count') or
                'performance' in record.getMessage().lower())


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = True,
    enable_structured: bool = True,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> None:
    """Set up logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files (defaults to ./work/logs)
        enable_console: Whether to enable console logging
        enable_file: Whether to enable file logging
        enable_structured: Whether to use structured JSON logging
        max_file_size: Maximum size for log files before rotation
        backup_count: Number of backup files to keep
    """
    if log_dir is None:
        log_dir = os.getenv("APP_LOG_DIR", "./work/logs")

    log_path = Path(log_dir)
    if enable_file:
        log_path.mkdir(parents=True, exist_ok=True)

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    file_formatter = 'structured' if enable_structured else 'detailed'

    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'detailed': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - [%(module)s.%(funcName)s:%(lineno)d] - PID:%(process)d - %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'structured': {
                '()': StructuredFormatter,
                'include_extra_fields': True
            }
        },
        'filters': {
            'request_response': {
                '()': RequestResponseFilter
            },
            'performance': {
                '()': PerformanceFilter
            }
        },
        'handlers': {},
        'loggers': {
            '': {
                'level': numeric_level,
                'handlers': []
            },
            'aggregator': {
                'level': numeric_level,
                'handlers': [],
                'propagate': False
            },
            'aggregator.services': {
                'level': numeric_level,
                'handlers': [],
                'propagate': False
            },
            'aggregator.services.upstream_client': {
                'level': numeric_level,
                'handlers': [],
                'propagate': False
            },
            'uvicorn': {
                'level': 'INFO',
                'handlers': [],
                'propagate': False
            },
            'uvicorn.access': {
                'level': 'INFO',
                'handlers': [],
                'propagate': False
            },
            'fastapi': {
                'level': 'INFO',
                'handlers': [],
                'propagate': False
            }
        }
    }

    handlers_to_add = []

    if enable_console:
        config['handlers']['console'] = {
            'class': 'logging.StreamHandler',
            'level': numeric_level,
            'formatter': 'structured' if enable_structured else 'standard',
            'stream': 'ext://sys.stdout'
        }
        handlers_to_add.append('console')

    if enable_file:
        def rotating(filename, level, filters=None):
            handler = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': level,
                'formatter': file_formatter,
                'filename': str(log_path / filename),
                'maxBytes': max_file_size,
                'backupCount': backup_count,
                'encoding': 'utf-8'
            }
            if filters:
                handler['filters'] = filters
            return handler

        config['handlers']['main_file'] = rotating('app.log', numeric_level)
        config['handlers']['upstream_file'] = rotating('upstream.log', 'DEBUG')
        config['handlers']['api_file'] = rotating('api.log', 'INFO', ['request_response'])
        config['handlers']['performance_file'] = rotating('performance.log', 'INFO', ['performance'])
        config['handlers']['error_file'] = rotating('errors.log', 'ERROR')
        handlers_to_add.extend(['main_file', 'error_file'])

    for logger_name in config['loggers']:
        config['loggers'][logger_name]['handlers'] = handlers_to_add.copy()

    if enable_file:
        config['loggers']['aggregator.services.upstream_client']['handlers'].append('upstream_file')
        config['loggers']['uvicorn.access']['handlers'].append('api_file')
        config['loggers']['aggregator']['handlers'].append('api_file')
        config['loggers']['aggregator.services']['handlers'].append('performance_file')
        config['loggers']['aggregator']['handlers'].append('performance_file')

    logging.config.dictConfig(config)

    logger = logging.getLogger(__name__)
    logger.info("Logging configuration initialized", extra={
        'log_level': log_level,
        'log_dir': str(log_path),
        'enable_console': enable_console,
        'enable_file': enable_file,
        'enable_structured': enable_structured,
        'handlers_configured': list(config['handlers'].keys())
    })


def get_request_logger(request_id: str, endpoint: str, method: str) -> ContextAdapter:
    """Get a logger adapter for API request logging.

    Args:
        request_id: Unique request identifier
        endpoint: API endpoint path
        method: HTTP method

    Returns:
        ContextAdapter with request context
    """
    logger = logging.getLogger('aggregator.api.requests')

    return ContextAdapter(logger, {
        'request_id': request_id,
        'endpoint': endpoint,
        'method': method
    })


def get_performance_logger(component: str) -> ContextAdapter:
    """Get a logger adapter for performance logging."""
    logger = logging.getLogger('aggregator.performance')

    return ContextAdapter(logger, {
        'component': component,
        'performance_log': True
    })


def log_api_request(request_id: str, endpoint: str, method: str, **extra):
    """Log an API request with structured data."""
    logger = get_request_logger(request_id, endpoint, method)
    logger.info(f"API request received: {method} {endpoint}", extra=extra)


def log_api_response(request_id: str, endpoint: str, method: str, status_code: int, duration: float, **extra):
    """Log an API response with structured data.

    Args:
        request_id: Unique request identifier
        endpoint: API endpoint path
        method: HTTP method
        status_code: HTTP status code
        duration: Request duration in seconds
        **extra: Additional fields to log
    """
    logger = get_request_logger(request_id, endpoint, method)
    logger.info(f"API response sent: {method} {endpoint} -> {status_code}", extra={
        'status_code': status_code,
        'duration': duration,
        **extra
    })


def log_performance_metric(component: str, operation: str, duration: float, **metrics):
    """Log a performance metric with structured data.

    Args:
        component: Component name
        operation: Operation name
        duration: Operation duration in seconds
        **metrics: Additional performance metrics
    """
    logger = get_performance_logger(component)
    logger.info(f"Performance: {component}.{operation}", extra={
        'operation': operation,
        'duration': duration,
        **metrics
    })
