"""Simple logger utility."""
import logging

from ..app.config import Config

logger = logging.getLogger("orderchat")
if not logger.handlers:
    h = logging.StreamHandler()
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    h.setFormatter(fmt)
    logger.addHandler(h)
    logger.setLevel(Config.LOG_LEVEL)

def get_logger(name: str = None):
    if not name or name == "orderchat":
        return logger
    if name.startswith("orderchat."):
        name = name[len("orderchat."):]
    return logger.getChild(name)
