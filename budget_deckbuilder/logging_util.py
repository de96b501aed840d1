from __future__ import annotations

import os
import logging

# Logging configuration
LOG_DIR = os.getenv('DECK_LOG_DIR', 'logs')
LOG_FILE = os.path.join(LOG_DIR, 'budget_deckbuilder.log')
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_LEVEL = getattr(logging, os.getenv('DECK_LOG_LEVEL', 'INFO').upper(), logging.INFO)
LOG_TO_FILE = os.getenv('DECK_LOG_TO_FILE', '0').lower() in ('1', 'true', 'on', 'enabled')


# Create a formatter that removes double underscores
class NoDunderFormatter(logging.Formatter):
    def format(self, record):
        record.name = record.name.replace("__", "")
        return super().format(record)


# Stream handler
stream_handler = logging.StreamHandler()
stream_handler.setFormatter(NoDunderFormatter(LOG_FORMAT))

_file_handler: logging.Handler | None = None


def _get_file_handler() -> logging.Handler:
    """File handler is built on first use so importing never creates the log dir."""
    global _file_handler
    if _file_handler is None:
        os.makedirs(LOG_DIR, exist_ok=True)
        _file_handler = logging.FileHandler(LOG_FILE, mode='w', encoding='utf-8')
        _file_handler.setFormatter(NoDunderFormatter(LOG_FORMAT))
    return _file_handler


# Logger assembly helper (idempotent)
def get_logger(name: str = 'budget_deckbuilder') -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(LOG_LEVEL)
        logger.addHandler(stream_handler)
        if LOG_TO_FILE:
            logger.addHandler(_get_file_handler())
    return logger
