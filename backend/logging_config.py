"""Logging configuration for backend."""
import logging
import os
import json
from logging.handlers import RotatingFileHandler
from flask import g, has_request_context, request
from shared.models import now

HANDLER_MARKER = '_store_survey_handler'


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, tagged with the request being served."""

    def format(self, record):
        log_entry = {
            'timestamp': now().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if has_request_context():
            log_entry['method'] = request.method
            log_entry['path'] = request.path
            user = g.get('user')
            if user is not None:
                log_entry['userId'] = user.id

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Fields passed as extra={'extra_fields': {...}}
        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


def _level(name):
    return getattr(logging, (name or 'INFO').upper(), logging.INFO)


def setup_logging(settings):
    """Setup logging for the backend from the application settings.

    The JSON file log rotates at ``log_max_bytes``; the console gets a short
    human-readable line. ``LOG_LEVEL`` in the environment wins over
    ``settings.log_level``. Calling this again swaps out the handlers a
    previous call installed and leaves any others alone.
    """
    level_name = os.getenv('LOG_LEVEL') or settings.log_level
    log_level = _level(level_name)

    os.makedirs(settings.log_dir, exist_ok=True)
    log_file = os.path.join(settings.log_dir, settings.log_file)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    file_handler = RotatingFileHandler(log_file, maxBytes=settings.log_max_bytes, backupCount=5)
    file_handler.setFormatter(StructuredFormatter())

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)-8s %(name)-20s %(message)s'))

    for handler in list(logger.handlers):
        if getattr(handler, HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    for handler in (file_handler, console_handler):
        handler.setLevel(log_level)
        setattr(handler, HANDLER_MARKER, True)
        logger.addHandler(handler)

    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(
        logging.INFO if settings.log_sql else logging.WARNING
    )

    logger.info("Logging initialized", extra={
        'extra_fields': {'log_level': level_name.upper(), 'log_file': log_file}
    })

    return logger
