import logging
import logging.config
import os
import json_log_formatter
from app.core.config import settings

COUNTS_LOGGER_NAME = "catalog_counts"

class CustomJSONFormatter(json_log_formatter.JSONFormatter):
    def json_record(self, message, extra, record):
        extra['message'] = message
        extra['timestamp'] = self.formatTime(record, self.datefmt)
        extra['level'] = record.levelname
        extra['logger'] = record.name
        if record.exc_info:
            extra['exc_info'] = self.formatException(record.exc_info)
        return extra

def setup_logging(app_log_file=None, counts_log_file=None, level=None):
    app_log_file = app_log_file or settings.APP_LOG_FILE
    counts_log_file = counts_log_file or settings.COUNTS_LOG_FILE
    level = level or settings.LOG_LEVEL

    os.makedirs(os.path.dirname(app_log_file) or ".", exist_ok=True)
    os.makedirs(os.path.dirname(counts_log_file) or ".", exist_ok=True)

    formatter = CustomJSONFormatter()

    # Main application log handler
    app_handler = logging.FileHandler(app_log_file)
    app_handler.setFormatter(formatter)

    # Count recomputations get their own file
    counts_handler = logging.FileHandler(counts_log_file)
    counts_handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[app_handler]
    )

    counts_logger = logging.getLogger(COUNTS_LOGGER_NAME)
    counts_logger.setLevel(level)
    counts_logger.addHandler(counts_handler)
    counts_logger.propagate = False
