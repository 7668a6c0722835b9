"""
Structured JSON Logging Configuration for VEO Content Analysis

- Machine-readable JSON format for log analysis platforms
- Contextual information (VEO, entity) for effective debugging
- Standard log levels with detailed messages
"""

import logging
import logging.config
import json
import sys
import os
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from pathlib import Path


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs structured JSON logs

    Every record carries its timestamp, level, logger and source location;
    context fields added through ``ContextAdapter`` are appended without
    their ``ctx_`` prefix.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""

        # Build base log entry
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'thread': record.thread,
            'process': record.process
        }

        # Add exception information if present
        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info) if record.exc_info else None
            }

        # Add custom context fields
        for key, value in record.__dict__.items():
            if key.startswith('ctx_'):
                log_entry[key[4:]] = value

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ContextAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds contextual information to log records

    Used to tag every message from a VEO component with the VEO and the
    entity (information object, content file...) it concerns.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Add context to log record"""

        extra = kwargs.get('extra', {})

        # Add our context with 'ctx_' prefix
        for key, value in self.extra.items():
            extra[f'ctx_{key}'] = value

        kwargs['extra'] = extra
        return msg, kwargs


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    enable_console: bool = True,
    enable_json: bool = True
) -> None:
    """
    Setup structured logging configuration

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (None = no file logging)
        enable_console: Whether to enable console logging
        enable_json: Whether to use JSON formatting
    """

    # Create logs directory if needed
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

    # Configure formatters
    if enable_json:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # Setup root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Clear existing handlers
    root_logger.handlers.clear()

    # Console handler (stderr, so reports on stdout stay clean)
    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, log_level.upper()))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    configure_application_loggers(log_level)


def configure_application_loggers(log_level: str = 'INFO'):
    """Set our loggers to the run's level and quieten library loggers"""

    # Our application loggers
    app_loggers = [
        'analysis.analyser',
        'analysis.batch',
        'storage.file_index',
        'storage.ltsf',
        'validation',
        'xmldoc.document',
        'cli.main'
    ]

    for logger_name in app_loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(getattr(logging, log_level.upper()))

    # External library loggers (reduce noise)
    external_loggers = {
        'lxml': logging.WARNING,
        'jinja2': logging.WARNING,
    }

    for logger_name, level in external_loggers.items():
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)


def get_contextual_logger(name: str, **context) -> ContextAdapter:
    """
    Get a logger with contextual information

    Args:
        name: Logger name
        **context: Contextual key-value pairs

    Returns:
        Logger adapter with context

    Example:
        logger = get_contextual_logger('validation.ContentFileRecord',
                                       entity='VEOContent.xml:IO-1:CF-1')
        logger.warning("Failed reading file to hash")
    """
    base_logger = logging.getLogger(name)
    return ContextAdapter(base_logger, context)


def log_hash_check(
    logger,
    path: str,
    algorithm: str,
    matched: bool
) -> None:
    """
    Log the outcome of a content file integrity check

    Args:
        logger: Logger or adapter
        path: Path of the content file within the VEO
        algorithm: Hash algorithm used
        matched: Whether the computed hash matched the stored one
    """

    log_data = {
        'extra': {
            'ctx_hash_path': path,
            'ctx_hash_algorithm': algorithm,
            'ctx_hash_matched': matched
        }
    }

    if matched:
        logger.debug(f"Hash check passed: {path} ({algorithm})", **log_data)
    else:
        logger.info(f"Hash check failed: {path} ({algorithm})", **log_data)


def log_veo_result(
    logger,
    veo: str,
    io_count: int,
    errors: int,
    warnings: int,
    duration: float,
    error: Optional[str] = None
) -> None:
    """
    Log the summary of one analysed VEO with standardized fields

    Args:
        logger: Logger instance
        veo: Path of the VEO
        io_count: Number of information objects read
        errors: Number of errors found
        warnings: Number of warnings found
        duration: Analysis duration in seconds
        error: Message if the VEO could not be processed
    """

    log_data = {
        'extra': {
            'ctx_veo': veo,
            'ctx_veo_io_count': io_count,
            'ctx_veo_errors': errors,
            'ctx_veo_warnings': warnings,
            'ctx_veo_duration': duration,
            'ctx_veo_passed': errors == 0
        }
    }

    if error:
        log_data['extra']['ctx_veo_failure'] = error
        logger.error(f"VEO could not be processed: {veo} - {error}", **log_data)
        return

    message = (f"VEO analysed: {veo} ({io_count} IOs, {errors} errors, "
               f"{warnings} warnings, {duration:.3f}s)")
    if errors:
        logger.warning(message, **log_data)
    else:
        logger.info(message, **log_data)


def init_from_environment(log_level: Optional[str] = None):
    """
    Initialize logging configuration from environment variables

    Args:
        log_level: Level to use instead of LOG_LEVEL (e.g. DEBUG for --debug)
    """

    log_level = log_level or os.getenv('LOG_LEVEL', 'INFO')
    log_file = os.getenv('LOG_FILE', './logs/veo-analysis.log')
    enable_json = os.getenv('LOG_FORMAT', 'json').lower() == 'json'

    setup_logging(
        log_level=log_level,
        log_file=log_file or None,
        enable_console=True,
        enable_json=enable_json
    )
