import asyncio
import inspect
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from loguru import logger

from training.enums import PlanEventType


@dataclass(frozen=True, slots=True)
class PlanEvent:
    type: PlanEventType
    plan_id: str | None = None
    created_at: datetime = field(default_factory=datetime.now)


PlanEventHandler = Callable[[PlanEvent], Awaitable[Any] | Any]


class PlanEventBus:
    """Fire-and-forget broadcast of plan data changes to presentation layers."""

    def __init__(self) -> None:
        self._handlers: list[PlanEventHandler] = []
        self._pending: set[asyncio.Task[Any]] = set()

    def subscribe(self, handler: PlanEventHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: PlanEventHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, event: PlanEvent) -> None:
        for handler in list(self._handlers):
            try:
                result = handler(event)
            except Exception as exc:  # noqa: BLE001
                logger.warning(f"plan_event_handler_failed event={event.type} error={exc}")
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"plan_event_handler_failed error={task.exception()}")

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
