"""
models.py
Lightweight domain helpers (plans, statuses, member dataclass).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date

# Plan durations in days (used for end_date auto-calculation)
PLAN_DAYS = {
    "3 Months": 90,
    "6 Months": 180,
    "1 Year": 365,
}

STATUS_ACTIVE = "Active"
STATUS_EXPIRED = "Expired"


@dataclass(frozen=True)
class Member:
    id: str
    name: str
    phone: str
    age: int
    weight: int
    membership_type: str
    start_date: date
    end_date: date
    # Derived at read time, never sent back to the directory
    status: str | None = None
    days_remaining: int | None = None

    def to_wire(self) -> dict:
        """
        camelCase payload for the directory. Derived fields are left out.
        """
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "age": self.age,
            "weight": self.weight,
            "membershipType": self.membership_type,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
        }

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "age": self.age,
            "weight": self.weight,
            "membership_type": self.membership_type,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status,
            "days_remaining": self.days_remaining,
        }


@dataclass(frozen=True)
class NewMember:
    id: str
    name: str
    phone: str
    age: int
    weight: int
    membership_type: str
    start_date: date
