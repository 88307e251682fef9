from __future__ import annotations

import enum
from collections import Counter
from typing import Any, Mapping, TypedDict

QUADRANTS: tuple[str, ...] = ("UR", "UL", "LL", "LR")
TOOTH_IDS: tuple[str, ...] = tuple(f"{quadrant}{number}" for quadrant in QUADRANTS for number in range(1, 9))


class ToothStatus(str, enum.Enum):
    healthy = "HEALTHY"
    filling = "FILLING"
    crown = "CROWN"
    missing = "MISSING"
    implant = "IMPLANT"
    root_canal = "ROOT_CANAL"
    cavity = "CAVITY"


class Tooth(TypedDict):
    status: str
    notes: str


class InvalidToothError(ValueError):
    pass


def _default_tooth() -> Tooth:
    return {"status": ToothStatus.healthy.value, "notes": ""}


def _coerce_tooth(tooth_id: str, raw: Mapping[str, Any] | None) -> Tooth:
    if raw is None:
        return _default_tooth()
    status_value = raw.get("status") or ToothStatus.healthy.value
    if isinstance(status_value, ToothStatus):
        status_value = status_value.value
    try:
        status = ToothStatus(str(status_value).upper())
    except ValueError as exc:
        raise InvalidToothError(f"Unknown status {status_value!r} for tooth {tooth_id}") from exc
    return {"status": status.value, "notes": str(raw.get("notes") or "")}


def create_empty_chart() -> dict[str, Tooth]:
    return {tooth_id: _default_tooth() for tooth_id in TOOTH_IDS}


def normalize_chart(raw: Mapping[str, Any] | None) -> dict[str, Tooth]:
    """Read a stored chart back into the fixed 32-key shape.

    Missing teeth get the default entry and unknown keys are dropped; an
    unknown status is rejected.
    """
    raw = raw or {}
    return {tooth_id: _coerce_tooth(tooth_id, raw.get(tooth_id)) for tooth_id in TOOTH_IDS}


def update_tooth(chart: Mapping[str, Any], tooth_id: str, tooth: Mapping[str, Any]) -> dict[str, Tooth]:
    if tooth_id not in TOOTH_IDS:
        raise InvalidToothError(f"Unknown tooth id {tooth_id!r}")
    updated = normalize_chart(chart)
    updated[tooth_id] = _coerce_tooth(tooth_id, tooth)
    return updated


def chart_summary(chart: Mapping[str, Any]) -> dict[str, int]:
    counts = Counter(entry["status"] for entry in normalize_chart(chart).values())
    return {status.value: counts.get(status.value, 0) for status in ToothStatus}
