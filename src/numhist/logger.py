"""
loguru setup for numhist.

Library code only emits ``logger.debug`` records (layout builds, merge path
selection, significance tests), so the default console level of WARNING keeps
normal runs quiet. Console records go to stderr, keeping stdout free for the
summaries and payloads written by the CLI. An optional file sink writes every
record as a JSON line.

The sinks are configured from ``settings.logging`` when this module is
imported; override them through ``NUMHIST__LOGGING__*`` environment variables
or call :func:`configure_logger` again:
::
    from numhist import LoggingSettings, configure_logger

    configure_logger(
        config=LoggingSettings(console_log_level="DEBUG", log_file="numhist.log")
    )
"""

import sys

from loguru import logger

from numhist.config import LoggingSettings, settings

__all__ = ["configure_logger", "logger"]


def configure_logger(config: LoggingSettings = settings.logging):
    """
    Replace or extend the loguru sinks used by numhist.

    :param config: Logging settings, ``settings.logging`` by default.
    """
    if config.disabled:
        logger.disable("numhist")
        return

    logger.enable("numhist")

    if config.clear_loggers:
        logger.remove()

    logger.add(
        sys.stderr,
        level=config.console_log_level.upper(),
        format=config.console_format,
    )

    if config.log_file or config.log_file_level:
        logger.add(
            config.log_file or "numhist.log",
            level=(config.log_file_level or "INFO").upper(),
            serialize=True,
        )


configure_logger()
