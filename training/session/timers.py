import asyncio
from typing import Callable, Protocol

from loguru import logger

TickCallback = Callable[[], None]


class IntervalTimer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...

    @property
    def is_running(self) -> bool: ...


TimerFactory = Callable[[float, TickCallback], IntervalTimer]


class AsyncioIntervalTimer:
    """Calls ``callback`` every ``interval`` seconds on the running event loop until cancelled."""

    def __init__(self, interval: float, callback: TickCallback) -> None:
        if interval <= 0:
            raise ValueError(f"Timer interval must be positive, got {interval}")
        self.interval = interval
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self._callback()
            except Exception as exc:  # noqa: BLE001
                logger.exception(f"timer_callback_failed interval={self.interval} error={exc}")
