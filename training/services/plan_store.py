import asyncio
from datetime import date

from loguru import logger

from training.domain import PlanRepository
from training.enums import PlanEventType, PlanStatus
from training.events import PlanEvent, PlanEventBus
from training.exceptions import PlanStoreError, TaskNotFoundError
from training.schemas import DailyTask, Plan


class PlanStore:
    """Single source of truth for plans and their daily tasks.

    Loaded plans are kept in an identity map, so a task handed out by
    :meth:`find_task` is the same object that :meth:`save_task` persists.
    Reloading keeps the plans already held and only picks up new or removed
    ones. At most one plan is active at a time.
    Storage failures are logged and reported as ``False``/``None``.
    """

    def __init__(self, repository: PlanRepository, events: PlanEventBus) -> None:
        self._repository = repository
        self._events = events
        self._plans: dict[str, Plan] = {}
        self._loaded = False
        self._lock = asyncio.Lock()

    async def load(self) -> bool:
        try:
            plans = await self._repository.get_all()
        except PlanStoreError as exc:
            logger.error(f"plan_store_load_failed error={exc}")
            return False
        self._plans = {plan.id: self._plans.get(plan.id, plan) for plan in plans}
        self._loaded = True
        logger.debug(f"plan_store_loaded count={len(self._plans)}")
        return True

    async def _ensure_loaded(self) -> None:
        if not self._loaded:
            await self.load()

    async def get_plans(self, status: PlanStatus | None = None) -> list[Plan]:
        await self._ensure_loaded()
        plans = [plan for plan in self._plans.values() if status is None or plan.status == status]
        return sorted(plans, key=lambda plan: plan.created_at, reverse=True)

    async def get_plan(self, plan_id: str) -> Plan | None:
        await self._ensure_loaded()
        return self._plans.get(plan_id)

    async def get_active_plan(self) -> Plan | None:
        active = await self.get_plans(PlanStatus.active)
        return active[0] if active else None

    async def find_task(self, task_id: str) -> DailyTask | None:
        await self._ensure_loaded()
        for plan in self._plans.values():
            task = plan.find_task(task_id)
            if task is not None:
                return task
        return None

    async def require_task(self, task_id: str) -> DailyTask:
        task = await self.find_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def tasks_in_range(self, start: date, end: date, status: PlanStatus | None = PlanStatus.active) -> list[DailyTask]:
        """Tasks dated within ``[start, end]``, ordered by date."""
        plans = await self.get_plans(status)
        tasks = [task for plan in plans for task in plan.daily_tasks if start <= task.date <= end]
        return sorted(tasks, key=lambda task: task.date)

    def plan_for_task(self, task: DailyTask) -> Plan | None:
        for plan in self._plans.values():
            if any(candidate is task for candidate in plan.daily_tasks):
                return plan
        return None

    def _adopt_task(self, task: DailyTask) -> Plan | None:
        """Put a detached copy of a stored task back into its plan in place of the stored one."""
        for plan in self._plans.values():
            for index, candidate in enumerate(plan.daily_tasks):
                if candidate.id == task.id:
                    plan.daily_tasks[index] = task
                    logger.debug(f"plan_store_task_adopted plan_id={plan.id} task_id={task.id}")
                    return plan
        return None

    async def archive_active_plan(self) -> bool:
        await self._ensure_loaded()
        archived_ok = True
        for plan in [plan for plan in self._plans.values() if plan.status == PlanStatus.active]:
            plan.status = PlanStatus.archived
            if await self._persist(plan):
                logger.info(f"plan_archived plan_id={plan.id}")
            else:
                plan.status = PlanStatus.active
                archived_ok = False
        return archived_ok

    async def set_active_plan(self, plan: Plan) -> bool:
        """Archive whatever is active, then insert ``plan`` as the active one.

        The two steps are sequenced but not transactional: if the insert fails
        after archiving succeeded, no plan is active until the call is retried.
        """
        async with self._lock:
            if not await self.archive_active_plan():
                logger.error(f"plan_activation_aborted plan_id={plan.id} reason=archive_failed")
                return False
            previous, previous_status = self._plans.get(plan.id), plan.status
            plan.status = PlanStatus.active
            self._plans[plan.id] = plan
            if not await self._persist(plan):
                plan.status = previous_status
                if previous is None:
                    self._plans.pop(plan.id, None)
                else:
                    self._plans[plan.id] = previous
                logger.error(f"plan_activation_failed plan_id={plan.id} active_plans=0")
                return False
        logger.info(f"plan_activated plan_id={plan.id} name={plan.name}")
        self._notify(plan.id)
        return True

    async def save_plan(self, plan: Plan) -> bool:
        """Persist ``plan`` and make it the held copy for its id.

        An active plan that would sit next to another active one goes through
        :meth:`set_active_plan` instead, so the other one is archived first.
        """
        await self._ensure_loaded()
        if plan.status == PlanStatus.active and any(
            other.id != plan.id and other.status == PlanStatus.active for other in self._plans.values()
        ):
            return await self.set_active_plan(plan)

        previous = self._plans.get(plan.id)
        self._plans[plan.id] = plan
        if not await self._persist(plan):
            if previous is None:
                self._plans.pop(plan.id, None)
            else:
                self._plans[plan.id] = previous
            return False
        self._notify(plan.id)
        return True

    async def save_task(self, task: DailyTask) -> bool:
        await self._ensure_loaded()
        plan = self.plan_for_task(task) or self._adopt_task(task)
        if plan is None:
            logger.warning(f"save_task_orphan task_id={task.id}")
            return False
        return await self.save_plan(plan)

    async def delete_plan(self, plan_id: str) -> bool:
        await self._ensure_loaded()
        try:
            await self._repository.delete(plan_id)
        except PlanStoreError as exc:
            logger.error(f"plan_delete_failed plan_id={plan_id} error={exc}")
            return False
        self._plans.pop(plan_id, None)
        self._notify(plan_id)
        return True

    async def _persist(self, plan: Plan) -> bool:
        try:
            await self._repository.save(plan)
        except PlanStoreError as exc:
            logger.error(f"plan_save_failed plan_id={plan.id} error={exc}")
            return False
        return True

    def _notify(self, plan_id: str | None) -> None:
        self._events.publish(PlanEvent(type=PlanEventType.plan_changed, plan_id=plan_id))
