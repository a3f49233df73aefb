import logging

from tokencat import config


def setup_logging(level: str = config.LOG_LEVEL):
    """
    Configure the root logger. Called once at process start.

    Args:
        level: root log level name
    """
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )
    root.handlers[:] = [handler]
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
