# app/core/logging.py
import logging
import sys
import colorlog

# Third-party loggers kept at WARNING unless the app itself runs at DEBUG
_QUIET_LOGGERS = ("pymongo", "motor", "httpx")


def configure_logging(level: int | str = logging.INFO, *, app_name: str | None = None) -> None:
    """
    Install a single colored stdout handler on the root logger.
    Safe to call more than once: previous handlers are replaced.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    prefix = f"{app_name} " if app_name else ""
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(
        colorlog.ColoredFormatter(
            f"%(log_color)s%(asctime)s {prefix}%(levelname)-8s [%(name)s]%(reset)s %(message)s",
            datefmt="%H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)
