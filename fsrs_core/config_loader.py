from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Sequence

from fsrs_core.defaults import resolve_parameters
from fsrs_core.optimizer import OptimizerConfig


def load_parameters(
    path: str | Path,
    *,
    user_id: int | None = None,
    key: str = "parameters",
) -> tuple[float, ...]:
    """
    Load a parameter vector from a JSON object (`{"parameters": [...]}`)
    or, with `user_id`, from a JSONL file of `{"user": ..., "parameters": ...}`
    records.
    """
    path = Path(path)
    if user_id is None:
        data = _read_json(path)
    else:
        data = _find_user_record(path, user_id)
    values = data.get(key)
    if not isinstance(values, Sequence) or isinstance(values, str):
        raise ValueError(f"{path} missing '{key}' sequence.")
    return resolve_parameters(values)


def load_optimizer_config(path: str | Path) -> OptimizerConfig:
    path = Path(path)
    data = _read_json(path)
    known = {f.name for f in dataclasses.fields(OptimizerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"{path} has unknown optimizer options: {', '.join(unknown)}")
    return OptimizerConfig(**data)


def _read_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object.")
    return data


def _find_user_record(path: Path, user_id: int) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, 1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(
                    f"Invalid JSON on line {line_number} of {path}"
                ) from exc
            if record.get("user") == user_id:
                return record
    raise ValueError(f"User {user_id} not found in {path}")


__all__ = ["load_optimizer_config", "load_parameters"]
