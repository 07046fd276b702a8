from typing import Protocol

from training.schemas import Plan


class PlanRepository(Protocol):
    async def get_all(self) -> list[Plan]: ...

    async def get(self, plan_id: str) -> Plan | None: ...

    async def save(self, plan: Plan) -> None: ...

    async def delete(self, plan_id: str) -> None: ...
