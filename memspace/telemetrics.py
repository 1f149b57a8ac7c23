"""Package logger and stream handler setup."""
import logging
import sys

LOG_LEVEL = logging.WARNING
LOG_FORMAT = '[{asctime} {name} - {levelname}] {message}'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOGGER = logging.getLogger('MemSpace')


def get_logger(**kwargs) -> logging.Logger:
    """Attach a single stream handler to the package logger and return it."""
    level = kwargs.get('level', LOG_LEVEL)
    stream_io = kwargs.get('stream_io', sys.stderr)
    formatter = kwargs.get('formatter', logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT, style='{'))

    LOGGER.setLevel(level)

    if stream_io:
        for handler in LOGGER.handlers:
            # noinspection PyUnresolvedReferences
            if type(handler) == logging.StreamHandler and handler.stream == stream_io:
                handler.setLevel(level)
                break
        else:
            logger_ch = logging.StreamHandler(stream=stream_io)
            logger_ch.setLevel(level=level)
            logger_ch.setFormatter(fmt=formatter)
            LOGGER.addHandler(logger_ch)

    return LOGGER
