"""Helpers for turning cast results into broadcast-ready JSON data."""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Dict


def serialize(obj: Any) -> Any:
    """Recursively convert ``obj`` into JSON-serialisable data."""

    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: serialize(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): serialize(v) for k, v in obj.items()}
    if isinstance(obj, (set, frozenset)):
        return sorted(serialize(v) for v in obj)
    if isinstance(obj, (list, tuple)):
        return [serialize(v) for v in obj]
    return obj


def result_to_dict(result: Any) -> Dict[str, Any]:
    """Serialize a :class:`SkillCastResult` for the broadcast layer."""

    data = serialize(result)
    if not isinstance(data, dict):
        raise TypeError(f"Expected a dataclass result, got {type(result).__name__}")
    return data


def result_to_json(result: Any) -> str:
    return json.dumps(result_to_dict(result), ensure_ascii=False)


__all__ = ["serialize", "result_to_dict", "result_to_json"]
