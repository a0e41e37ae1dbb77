"""
utils.py
Membership lifecycle (plans, dates, status), validation, exports.
"""

from __future__ import annotations

import os
from dataclasses import replace
from datetime import date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import pandas as pd

from errors import ValidationError
from models import PLAN_DAYS, STATUS_ACTIVE, STATUS_EXPIRED, Member

MEMBER_COLUMNS = [
    "id", "name", "phone", "age", "weight", "membership_type",
    "start_date", "end_date", "status", "days_remaining",
]


def sheet_timezone() -> tzinfo | None:
    """
    Timezone of the spreadsheet (GYM_TIMEZONE, e.g. "Asia/Kolkata"). None means the machine's local zone.
    """
    name = os.environ.get("GYM_TIMEZONE", "").strip()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone in GYM_TIMEZONE: {name!r}") from None


def parse_date(value) -> date:
    """
    Accepts a date, a datetime, an ISO date ("2024-01-01") or an ISO timestamp.

    Spreadsheet backends send dates as UTC instants ("2023-12-31T18:30:00.000Z" is
    2024-01-01 in Hyderabad), so aware timestamps are converted to the sheet's
    timezone before the calendar date is taken.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD).") from None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(sheet_timezone())
        return value.date()
    if isinstance(value, date):
        return value
    raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD).")


def plan_duration_days(plan_type: str) -> int:
    try:
        return PLAN_DAYS[plan_type]
    except KeyError:
        raise ValidationError(f"Unknown membership type: {plan_type!r}.") from None


def compute_end_date(start_date, plan_type: str) -> date:
    return parse_date(start_date) + timedelta(days=plan_duration_days(plan_type))


def compute_status(end_date, today: date | None = None) -> str:
    # Members stay active through their last valid day
    today = today or date.today()
    return STATUS_ACTIVE if today <= parse_date(end_date) else STATUS_EXPIRED


def compute_days_remaining(end_date, today: date | None = None) -> int | None:
    today = today or date.today()
    end = parse_date(end_date)
    if today > end:
        return None
    return max(0, (end - today).days)


def with_derived_fields(member: Member, today: date | None = None) -> Member:
    today = today or date.today()
    return replace(
        member,
        status=compute_status(member.end_date, today),
        days_remaining=compute_days_remaining(member.end_date, today),
    )


def renew(member: Member, new_type: str, new_start_date) -> Member:
    """
    Start a new plan cycle. Contact info and id are kept as they are.
    """
    start = parse_date(new_start_date)
    return replace(
        member,
        membership_type=new_type,
        start_date=start,
        end_date=compute_end_date(start, new_type),
        status=None,
        days_remaining=None,
    )


def to_int(value) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Expected a whole number, got {value!r}.") from None


def member_from_wire(data: dict) -> Member:
    """
    Build a Member from a directory record. Stored status/daysRemaining are ignored.
    """
    if not isinstance(data, dict):
        raise ValidationError("Member record is not an object.")
    try:
        member_id = str(data["id"]).strip()
        start = parse_date(data["startDate"])
        plan_type = str(data["membershipType"])
    except KeyError as exc:
        raise ValidationError(f"Member record is missing {exc.args[0]!r}.") from None

    end_raw = data.get("endDate")
    end = parse_date(end_raw) if end_raw else compute_end_date(start, plan_type)

    return Member(
        id=member_id,
        name=str(data.get("name", "")),
        phone=str(data.get("phone", "")),
        age=to_int(data.get("age")),
        weight=to_int(data.get("weight")),
        membership_type=plan_type,
        start_date=start,
        end_date=end,
    )


def validate_member_inputs(member_id: str, name: str, phone: str, age, weight, plan_type: str, start_date) -> list[str]:
    errors: list[str] = []
    if not str(member_id).strip():
        errors.append("Member ID is required.")
    if not name.strip():
        errors.append("Name is required.")
    if not phone.strip():
        errors.append("Phone is required.")
    try:
        to_int(age)
    except ValidationError:
        errors.append("Age must be a whole number.")
    try:
        to_int(weight)
    except ValidationError:
        errors.append("Weight must be a whole number.")
    if plan_type not in PLAN_DAYS:
        errors.append("Membership type must be one of: " + ", ".join(PLAN_DAYS) + ".")
    try:
        parse_date(start_date)
    except ValidationError:
        errors.append("Start date must be a valid ISO date (YYYY-MM-DD).")
    return errors


def suggest_member_id(members: list[Member]) -> str:
    taken = {m.id for m in members}
    n = len(members) + 1
    while f"GYM{n:03d}" in taken:
        n += 1
    return f"GYM{n:03d}"


def filter_by_status(members: list[Member], status_filter: str = "All") -> list[Member]:
    if status_filter not in (STATUS_ACTIVE, STATUS_EXPIRED):
        return list(members)
    return [m for m in members if m.status == status_filter]


def member_stats(members: list[Member]) -> dict:
    return {
        "total": len(members),
        "active": sum(1 for m in members if m.status == STATUS_ACTIVE),
        "expired": sum(1 for m in members if m.status == STATUS_EXPIRED),
    }


def expiring_soon(members: list[Member], today: date | None = None, days: int = 7) -> list[Member]:
    today = today or date.today()
    horizon = today + timedelta(days=days)
    soon = [m for m in members if today <= m.end_date <= horizon]
    return sorted(soon, key=lambda m: m.end_date)


def members_to_dataframe(members: list[Member]) -> pd.DataFrame:
    if not members:
        return pd.DataFrame(columns=MEMBER_COLUMNS)
    df = pd.DataFrame([m.to_row() for m in members], columns=MEMBER_COLUMNS)
    # Keep blanks for expired members instead of NaN floats
    df["days_remaining"] = df["days_remaining"].astype("Int64")
    return df


def members_to_csv_bytes(members: list[Member]) -> bytes:
    df = members_to_dataframe(members)
    return df.to_csv(index=False).encode("utf-8")
