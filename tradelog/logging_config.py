import logging
import sys
from typing import Union


def setup_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Configure the root logger.
    Format: 2024-03-21 10:00:00.123 | INFO    | module:function:line - message
    """
    log_format = "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(name)s:%(funcName)s:%(lineno)d - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))

    root_logger = logging.getLogger()

    # drop handlers from earlier calls so lines aren't printed twice
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # the dev server logs every request at INFO
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    return root_logger
