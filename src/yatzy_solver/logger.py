import logging

from .config import default_log_level

logging.basicConfig(
    format='%(asctime)s %(levelname)-8s %(filename)-15s %(message)s',
    level=default_log_level())


class YatzyLogger:
    def __init__(self, name):
        self.logger = logging.getLogger(name)

    def get_logger(self):
        return self.logger


def set_log_level(level):
    """Apply `level` (name or number) to every yatzy_solver logger."""
    if isinstance(level, str):
        level = level.upper()
    logging.getLogger("yatzy_solver").setLevel(level)
