# ============================================
# Veracity - src/veracity/utils/logger.py
# Logging setup with structured output and performance tracking
# ============================================

import json
import logging
import logging.config
import sys
import time
import traceback
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional

from .config_loader import get_config

ROOT_LOGGER_NAME = "veracity"
CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

class PerformanceLogger:
    """Performance tracking and timing utilities"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.timings: Dict[str, float] = {}

    def time_operation(self, operation_name: str):
        """Decorator for timing operations"""
        def decorator(func: Callable) -> Callable:
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    duration = time.perf_counter() - start_time
                    self.logger.error(
                        f"PERFORMANCE: {operation_name} failed after {duration:.3f}s",
                        extra={
                            'operation': operation_name,
                            'duration': duration,
                            'error': str(e),
                            'performance_metric': True
                        }
                    )
                    raise
                duration = time.perf_counter() - start_time
                self.log_timing(operation_name, duration, function=func.__name__)
                return result
            return wrapper
        return decorator

    def log_timing(self, operation_name: str, duration: float, **kwargs):
        """Manually log timing information"""
        self.timings[operation_name] = duration
        self.logger.debug(
            f"TIMING: {operation_name} - {duration:.3f}s",
            extra={
                'operation': operation_name,
                'duration': duration,
                'performance_metric': True,
                **kwargs
            }
        )

    def get_performance_summary(self) -> Dict[str, Any]:
        """Get summary of recorded performance metrics"""
        if not self.timings:
            return {}

        return {
            'total_operations': len(self.timings),
            'total_time': sum(self.timings.values()),
            'average_time': sum(self.timings.values()) / len(self.timings),
            'slowest_operation': max(self.timings.items(), key=lambda x: x[1]),
            'fastest_operation': min(self.timings.items(), key=lambda x: x[1]),
            'operations': dict(self.timings)
        }

class AuditLogger:
    """Audit trail of model lifecycle events"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log_model_training(self, model_name: str, n_samples: int, **metadata):
        """Log model fit events"""
        self.logger.info(
            f"MODEL_TRAINING: {model_name} on {n_samples} samples",
            extra={
                'audit': True,
                'event_type': 'model_training',
                'model_name': model_name,
                'n_samples': n_samples,
                'event_time': datetime.now(timezone.utc).isoformat(),
                **metadata
            }
        )

    def log_prediction(self, model_name: str, n_queries: int, **metadata):
        """Log prediction batches"""
        self.logger.info(
            f"PREDICTION: {model_name} for {n_queries} rows",
            extra={
                'audit': True,
                'event_type': 'prediction',
                'model_name': model_name,
                'n_queries': n_queries,
                'event_time': datetime.now(timezone.utc).isoformat(),
                **metadata
            }
        )

class ContextFilter(logging.Filter):
    """Add contextual information to log records"""

    def __init__(self):
        super().__init__()
        self.context: Dict[str, Any] = {}

    def filter(self, record):
        for key, value in self.context.items():
            if not hasattr(record, key):
                setattr(record, key, value)

        if not hasattr(record, 'component'):
            # veracity.models.neighbors -> models
            name_parts = record.name.split('.')
            record.component = name_parts[1] if len(name_parts) >= 2 else 'core'

        return True

    def set_context(self, **kwargs):
        """Set context for subsequent log messages"""
        self.context.update(kwargs)

    def clear_context(self):
        self.context.clear()

_STANDARD_RECORD_KEYS = frozenset((
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'message', 'asctime'
))

class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_KEYS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)

class VeracityLogger:
    """
    Logging system for Veracity

    Features:
    - dictConfig from logging.yaml when the config provides one
    - Console handler on the package logger otherwise
    - Performance and audit loggers per component
    - Context-aware records
    """

    def __init__(self):
        self.context_filter = ContextFilter()
        self._loggers: Dict[str, logging.Logger] = {}
        self._performance_loggers: Dict[str, PerformanceLogger] = {}
        self._audit_loggers: Dict[str, AuditLogger] = {}
        self._setup_logging()

    def _setup_logging(self):
        """Setup logging configuration"""
        logging_config = get_config('logging')
        if logging_config:
            self._setup_from_config(logging_config)
        else:
            self._setup_default_logging()

    def _setup_from_config(self, config: Dict[str, Any]):
        """Setup logging from configuration file"""
        config.setdefault('version', 1)
        config.setdefault('disable_existing_loggers', False)
        logging.config.dictConfig(config)

        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.addFilter(self.context_filter)

    def _setup_default_logging(self):
        """Attach a console handler to the package logger"""
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        if package_logger.handlers:
            return

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
        console_handler.setLevel(logging.WARNING)
        console_handler.addFilter(self.context_filter)

        package_logger.setLevel(logging.INFO)
        package_logger.addHandler(console_handler)

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a logger for a specific component

        Args:
            name: Logger name (e.g., 'data.table', 'models.neighbors')

        Returns:
            Configured logger instance
        """
        if name in self._loggers:
            return self._loggers[name]

        full_name = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"
        logger = logging.getLogger(full_name)
        self._loggers[name] = logger
        return logger

    def get_performance_logger(self, name: str) -> PerformanceLogger:
        """Get performance logger for a component"""
        if name not in self._performance_loggers:
            self._performance_loggers[name] = PerformanceLogger(self.get_logger(f"{name}.performance"))
        return self._performance_loggers[name]

    def get_audit_logger(self, name: str = "audit") -> AuditLogger:
        """Get audit logger for model lifecycle events"""
        if name not in self._audit_loggers:
            self._audit_loggers[name] = AuditLogger(self.get_logger(f"audit.{name}"))
        return self._audit_loggers[name]

    def set_level(self, level: int):
        """Set the level of the package logger and its console handlers"""
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.setLevel(level)
        for handler in package_logger.handlers:
            handler.setLevel(level)

    def set_format(self, log_format: str):
        """Switch the package handlers between 'text' and 'json' output"""
        if log_format == 'json':
            formatter = JSONFormatter()
        elif log_format == 'text':
            formatter = logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT)
        else:
            raise ValueError(f"Unknown log format {log_format!r}; expected 'text' or 'json'")

        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.setFormatter(formatter)

    def set_context(self, **kwargs):
        self.context_filter.set_context(**kwargs)

    def clear_context(self):
        self.context_filter.clear_context()

# Global logger instance
logger_system = VeracityLogger()

def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific component"""
    return logger_system.get_logger(name)

def get_performance_logger(name: str) -> PerformanceLogger:
    """Get performance logger for a component"""
    return logger_system.get_performance_logger(name)

def get_audit_logger(name: str = "audit") -> AuditLogger:
    """Get audit logger for model lifecycle events"""
    return logger_system.get_audit_logger(name)

def set_log_level(level: int):
    """Set the level of all Veracity logging"""
    logger_system.set_level(level)

def set_log_format(log_format: str):
    """Use plain text or JSON lines for all Veracity logging"""
    logger_system.set_format(log_format)

def set_logging_context(**kwargs):
    """Set context for all subsequent log messages"""
    logger_system.set_context(**kwargs)

def clear_logging_context():
    """Clear logging context"""
    logger_system.clear_context()
