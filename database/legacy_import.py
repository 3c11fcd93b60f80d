"""Import of the legacy app's JSON state blob.

The legacy app kept its whole state in one JSON document::

    {
      "schemaVersion": 1,             # optional, see detect_legacy_version
      "staff": [{"id", "name", "role": {"id", "name", "color"},
                 "lunchShift", "dinnerShift", "isActive"}],
      "tipCalculations": [{"id", "date", "mealPeriod", "totalTipAmount",
                           "undistributedAmount", "staffMembers": [...]}]
    }

Rows are written in the blob's own unit and then run through the same
upgrade steps as a stored database, so version 1 percent values end up
as hours.
"""
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Union

from loguru import logger

from tipping.models import FULL_SHIFT_UNIT, to_decimal
from .migrations import CURRENT_SCHEMA_VERSION, UPGRADE_STEPS, LEGACY_FULL_SHIFT_PERCENT

if TYPE_CHECKING:
    from .manager import DatabaseManager


def load_legacy_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a legacy JSON blob from disk.

    Raises:
        ValueError: The file does not hold a JSON object.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Legacy data file must be a JSON object.")
    return data


def detect_legacy_version(payload: Dict[str, Any]) -> int:
    """Return the schema version of a legacy blob.

    Blobs written before the hours migration carry no version and store
    percent values; newer ones carry no version either but store hours.
    Any shift value above a full shift in hours marks a percent blob.
    """
    if "schemaVersion" in payload:
        return int(payload["schemaVersion"])
    for item in payload.get("staff", []):
        for key in ("lunchShift", "dinnerShift", "customPercentage"):
            if key in item and to_decimal(item[key]) > FULL_SHIFT_UNIT:
                logger.info(f"Legacy blob has no schemaVersion; {key} {item[key]} means percent (version 1)")
                return 1
    logger.info("Legacy blob has no schemaVersion; shift values are hours (version 2)")
    return 2


def _staff_row(item: Dict[str, Any], default_shift) -> Dict[str, Any]:
    role = item.get("role") or {}
    # The oldest blobs only had one customPercentage for both meal periods
    fallback = item.get("customPercentage", default_shift)
    return {
        "id": str(item["id"]),
        "name": item["name"],
        "role_id": role.get("id", "") if isinstance(role, dict) else str(role),
        "lunch_shift": item.get("lunchShift", fallback),
        "dinner_shift": item.get("dinnerShift", fallback),
        "is_active": bool(item.get("isActive", True)),
    }


def _calculation_row(item: Dict[str, Any]) -> Dict[str, Any]:
    lines: List[Dict[str, Any]] = []
    for line in item.get("staffMembers", []):
        role = line.get("role") or {}
        lines.append({
            "staff_id": str(line["staffId"]),
            "staff_name": line["staffName"],
            "role_id": role.get("id", ""),
            "role_name": role.get("name"),
            "role_color": role.get("color"),
            "shift_value": line.get("customPercentage", 0),
            "tip_amount": line.get("tipAmount", 0),
            "pool": line.get("pool", "pool1"),
        })
    return {
        "id": str(item["id"]),
        "date": item["date"],
        "meal_period": item.get("mealPeriod", "dinner"),
        "total_tip_amount": item.get("totalTipAmount", 0),
        "undistributed_amount": item.get("undistributedAmount", 0),
        "pool2_base_amount": item.get("pool2BaseAmount", 0),
        "pool2_extra_amount": item.get("pool2ExtraAmount", 0),
        "lines": lines,
    }


def import_legacy_state(db: "DatabaseManager", payload: Dict[str, Any]) -> Dict[str, int]:
    """Import a legacy blob into an empty database.

    Args:
        db: Target database manager (tables already created).
        payload: Parsed legacy JSON blob.

    Returns:
        Number of imported records, ``{"staff": n, "calculations": m}``.

    Raises:
        ValueError: The database already holds data, or the blob version
            is unknown.
    """
    version = detect_legacy_version(payload)
    if not 1 <= version <= CURRENT_SCHEMA_VERSION:
        raise ValueError(f"Unsupported legacy schema version: {version}")

    if db.staff.get_all_staff() or db.calculations.get_all_calculations(limit=1):
        raise ValueError("Legacy import needs an empty database")

    default_shift = LEGACY_FULL_SHIFT_PERCENT if version == 1 else FULL_SHIFT_UNIT
    staff_items = payload.get("staff", [])
    calculation_items = payload.get("tipCalculations", [])

    with db.get_session() as session:
        for item in staff_items:
            db.staff.save(_staff_row(item, default_shift), session=session)
        session.flush()
        for next_version in range(version + 1, CURRENT_SCHEMA_VERSION + 1):
            UPGRADE_STEPS[next_version](session)
        for item in calculation_items:
            db.calculations.save(_calculation_row(item), session=session)
        session.commit()

    logger.info(
        f"Imported {len(staff_items)} staff and {len(calculation_items)} calculations "
        f"from legacy schema version {version}"
    )
    return {"staff": len(staff_items), "calculations": len(calculation_items)}
