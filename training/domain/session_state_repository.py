from typing import Protocol

from training.schemas import SessionSnapshot


class SessionStateRepository(Protocol):
    async def save(self, snapshot: SessionSnapshot) -> None: ...

    async def load(self) -> SessionSnapshot | None: ...

    async def clear(self) -> None: ...
