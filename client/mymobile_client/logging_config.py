"""
Logging configuration for the MyMobile client

Shared by the library, the command line tool and the stub gateway. Library
modules only create loggers; handlers are installed by setup_logging, which
the CLI and the stub gateway call at startup.
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def setup_logging(log_level=None, log_file=None, max_bytes=10*1024*1024, backup_count=5):
    """
    Set up logging for the MyMobile tools.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (if None, logs to stdout)
        max_bytes: Maximum size of log file before rotation (default 10MB)
        backup_count: Number of backup log files to keep (default 5)
    """

    if log_level is None:
        log_level = os.environ.get('LOG_LEVEL', 'INFO')
    log_level = log_level.upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {log_level}")

    if log_file is None:
        log_file = os.environ.get('LOG_FILE')

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level))

    # Clear any existing handlers
    root_logger.handlers.clear()

    if log_file:
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging initialized - Level: {log_level}, Output: {log_file or 'stdout'}")

    return logger


def get_logger(name):
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_sms_event(event_type, event_id=None, destinations=None, groups=None,
                  cost=None, success=True, error=None):
    """
    Log SMS send events with structured information.

    Args:
        event_type: Type of SMS event ('sms_sent' or 'sms_failed')
        event_id: Event ID the API assigned to the send
        destinations: Recipient numbers of a bulk send
        groups: Target group names of a group send
        cost: Credits charged for the send
        success: Whether the operation was successful
        error: Error message if applicable
    """
    logger = logging.getLogger('sms')

    log_data = {
        'event_type': event_type,
        'success': success,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }

    if event_id:
        log_data['event_id'] = event_id
    if destinations:
        log_data['destinations'] = ','.join(destinations)
    if groups:
        log_data['groups'] = ','.join(groups)
    if cost is not None:
        log_data['cost'] = cost
    if error:
        log_data['error'] = error

    # Format as key=value pairs for easy parsing
    log_message = ' '.join([f"{k}={v}" for k, v in log_data.items()])

    if success:
        logger.info(f"SMS: {log_message}")
    else:
        logger.error(f"SMS: {log_message}")
