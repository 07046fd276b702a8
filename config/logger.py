import logging
import sys
import types

from loguru import logger

from config.app_settings import Settings


def configure_loguru(settings: Settings) -> None:
    logger.remove()
    logger.configure(
        handlers=[  # type: ignore
            {
                "sink": sys.stdout,
                "level": settings.LOG_LEVEL,
                "format": (
                    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                    "<level>{level}</level> | "
                    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                    "<level>{message}</level>"
                ),
                "colorize": True,
            },
        ]
    )

    logging.basicConfig(handlers=[InterceptHandler(settings.LOG_LEVEL)], level=0, force=True)
    _suppress_third_party_logs()


def _suppress_third_party_logs() -> None:
    suppress_map: dict[str, str] = {
        "redis": "WARNING",
        "asyncio": "WARNING",
    }
    for logger_name, level in suppress_map.items():
        logging.getLogger(logger_name).setLevel(level)


class InterceptHandler(logging.Handler):
    def __init__(self, min_level: int | str = logging.NOTSET) -> None:
        super().__init__()
        self.min_level = _resolve_level(min_level)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            loguru_level = logger.level(record.levelname).name
        except ValueError:
            loguru_level = record.levelno

        frame: types.FrameType | None = logging.currentframe()
        depth = 2
        logging_file = getattr(logging, "__file__", None)
        while frame and logging_file and frame.f_code.co_filename == logging_file:
            frame = frame.f_back
            depth += 1

        if record.levelno >= self.min_level:
            logger.opt(depth=depth, exception=record.exc_info).log(loguru_level, record.getMessage())


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level

    mapping = logging.getLevelNamesMapping()
    resolved = mapping.get(level.upper())
    if isinstance(resolved, int):
        return resolved

    raise ValueError(f"Unknown log level: {level}")
