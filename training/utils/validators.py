import json
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from training.exceptions import PlanStoreError

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_or_raise(data: str | bytes | dict[str, Any], model_cls: type[ModelT], context: str = "") -> ModelT:
    try:
        if isinstance(data, (str, bytes)):
            return model_cls.model_validate_json(data)
        return model_cls.model_validate(data)
    except (ValidationError, json.JSONDecodeError) as e:
        name: str = str(getattr(model_cls, "__name__", None) or model_cls.__class__.__name__)
        context_text = f" in {context}" if context else ""
        msg = f"Validation failed for {name}{context_text}: {e}"
        logger.error(msg)
        raise PlanStoreError(message=f"Invalid {name} data", details=msg) from e
