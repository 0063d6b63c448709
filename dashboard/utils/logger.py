import logging

logger = logging.getLogger("dashboard")


def get_logger(name: str):
    if name == "dashboard" or name.startswith("dashboard."):
        return logging.getLogger(name)
    return logger.getChild(name)
