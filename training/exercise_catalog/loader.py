import json
from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from training.exceptions import ExerciseCatalogError
from training.schemas import Exercise


def _default_catalog_path() -> Path:
    return Path(__file__).resolve().parent / "exercises.jsonl"


def _parse_line(raw_line: str, line_no: int, path: Path) -> Exercise:
    try:
        payload = json.loads(raw_line)
    except json.JSONDecodeError as exc:
        raise ExerciseCatalogError(str(path), f"line {line_no}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ExerciseCatalogError(str(path), f"line {line_no}: expected an object")
    try:
        return Exercise.model_validate(payload)
    except ValidationError as exc:
        raise ExerciseCatalogError(str(path), f"line {line_no}: {exc}") from exc


@lru_cache(maxsize=4)
def _load(path: Path) -> tuple[Exercise, ...]:
    if not path.exists():
        logger.critical(f"exercise_catalog_missing path={path}")
        raise ExerciseCatalogError(str(path), "file not found")
    entries: list[Exercise] = []
    seen: set[str] = set()
    try:
        with path.open("r", encoding="utf-8") as handle:
            for line_no, line in enumerate(handle, start=1):
                raw_line = line.strip()
                if not raw_line:
                    continue
                entry = _parse_line(raw_line, line_no, path)
                if entry.id in seen:
                    raise ExerciseCatalogError(str(path), f"line {line_no}: duplicate id {entry.id}")
                seen.add(entry.id)
                entries.append(entry)
    except ExerciseCatalogError as exc:
        logger.critical(f"exercise_catalog_invalid path={path} error={exc.details}")
        raise
    if not entries:
        logger.critical(f"exercise_catalog_empty path={path}")
        raise ExerciseCatalogError(str(path), "catalog is empty")
    logger.debug(f"exercise_catalog_loaded path={path} count={len(entries)}")
    return tuple(entries)


def load_exercise_catalog(path: str | Path | None = None) -> tuple[Exercise, ...]:
    resolved = Path(path).expanduser().resolve() if path else _default_catalog_path()
    return _load(resolved)


__all__ = ["load_exercise_catalog"]
