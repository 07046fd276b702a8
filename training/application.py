from loguru import logger

from config.app_settings import Settings
from config.logger import configure_loguru
from training.containers import App, create_container, set_container
from training.infra import close_redis_client


async def bootstrap(settings: Settings) -> App:
    """Build the container and load everything a session needs.

    A missing or malformed exercise catalog raises ``ExerciseCatalogError``;
    an unreachable plan store is logged and the store retries on first read.
    """
    configure_loguru(settings)
    container = create_container(settings)
    set_container(container)

    catalog = container.catalog()
    store = container.plan_store()
    loaded = await store.load()
    logger.info(
        f"application_started environment={settings.ENVIRONMENT} exercises={len(catalog)} plans_loaded={loaded}"
    )
    return container


async def shutdown(container: App) -> None:
    await container.plan_events().drain()
    await close_redis_client(container.redis_client())
    logger.info("application_stopped")
