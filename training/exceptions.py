class ExerciseCatalogError(Exception):
    def __init__(self, path: str, details: str = ""):
        self.path = path
        self.details = details
        super().__init__(f"Exercise catalog unavailable at {path}: {details}")


class PlanStoreError(Exception):
    def __init__(self, message: str, details: str = ""):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        return f"{self.message} - {self.details}" if self.details else self.message


class SessionStateError(Exception):
    def __init__(self, message: str, details: str = ""):
        self.message = message
        self.details = details
        super().__init__(self.message)


class PlanNotFoundError(Exception):
    def __init__(self, plan_id: str):
        super().__init__(f"Plan not found for plan_id {plan_id}")
        self.plan_id = plan_id


class TaskNotFoundError(Exception):
    def __init__(self, task_id: str):
        super().__init__(f"Daily task not found for task_id {task_id}")
        self.task_id = task_id
