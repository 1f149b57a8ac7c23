"""First-fit memory space simulator with explicit defragmentation."""

import logging

from .telemetrics import LOGGER
from .common import NO_FIT, Block, BlockNotFoundError, MemSpaceError, SequenceIndexError, TraceFormatError
from .sequence import BlockCursor, BlockSequence, Node
from .allocators.first_fit import MemorySpace, UsageReport
from .config import settings


def set_logger(logger: logging.Logger):
    global LOGGER
    LOGGER = logger

    from .allocators import first_fit
    from . import config, trace

    first_fit.LOGGER = logger.getChild('FirstFit')
    config.LOGGER = logger.getChild('Config')
    trace.LOGGER = logger.getChild('Trace')


__all__ = [
    "settings",
    "set_logger",
    "NO_FIT",
    "Block",
    "Node",
    "BlockCursor",
    "BlockSequence",
    "MemorySpace",
    "UsageReport",
    "MemSpaceError",
    "SequenceIndexError",
    "BlockNotFoundError",
    "TraceFormatError",
]
