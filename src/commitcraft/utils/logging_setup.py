"""Logging configuration for command-line runs."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "openai")


def configure_logging(verbose: bool = False) -> None:
    """Install a stderr handler for the commitcraft loggers.

    Library code only creates loggers with logging.getLogger(__name__);
    handlers are installed here, once, by the CLI.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )
    logging.getLogger("commitcraft").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
