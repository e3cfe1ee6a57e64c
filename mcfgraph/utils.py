import logging
from contextlib import contextmanager


@contextmanager
def log_level(lev: int = logging.ERROR):
    logger = logging.getLogger("mcfgraph")
    prev_level = logger.level
    logger.setLevel(lev)
    try:
        yield
    finally:
        logger.setLevel(prev_level)
