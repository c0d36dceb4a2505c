"""
Logging setup.
"""

import logging

_HANDLER_NAME = "valuation-engine"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Install a single-line stream handler on the root logger.

    Safe to call more than once; the handler is only added the first time.
    """
    root = logging.getLogger()

    if not any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
        root.addHandler(handler)

    root.setLevel(level.upper())
    return root
