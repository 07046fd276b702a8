from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from config.app_settings import Settings


def configure_loguru(settings: "Settings | None" = None) -> None:
    """Configure logging with lazy import to avoid early settings access."""
    from config.app_settings import settings as default_settings
    from config.logger import configure_loguru as _configure_loguru

    _configure_loguru(settings or default_settings)
