"""
directory.py
Client for the remote member directory (a spreadsheet script endpoint speaking JSON).

GET  ?action=lookup&id=..            public
GET  ?action=getAll&password=..      admin
POST {password, action, ...}         admin (addMember, updateMember, renewMember, deleteMember)
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import date
from typing import Callable

import requests

import utils
from config import AppConfig
from errors import (
    AuthError,
    Conflict,
    DirectoryError,
    NetworkError,
    NotConfigured,
    NotFound,
    Timeout,
    ValidationError,
)
from models import Member, NewMember

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"name", "phone", "age", "weight", "membership_type", "start_date"}


def classify_error(message: str, default: type[DirectoryError] = DirectoryError) -> DirectoryError:
    """
    Map a backend error string onto an error kind.
    """
    text = message.lower()
    if "not found" in text:
        return NotFound(message)
    if "already exists" in text or "duplicate" in text:
        return Conflict(message)
    if "password" in text or "unauthorized" in text or "auth" in text:
        return AuthError(message)
    return default(message)


class DirectoryClient:
    def __init__(self, config: AppConfig, session=None, today: Callable[[], date] = date.today):
        self.config = config
        self.http = session or requests.Session()
        self.today = today

    # ---------- transport ----------

    def _url(self) -> str:
        url = self.config.api_url
        if not url:
            raise NotConfigured()
        return url

    def _password(self) -> str:
        password = self.config.admin_password
        if not password:
            raise AuthError("Admin login required")
        return password

    def _decode(self, response) -> dict:
        try:
            data = response.json()
        except ValueError:
            logger.warning("Directory returned a non-JSON response (HTTP %s)", response.status_code)
            raise NetworkError(f"Unexpected response from directory (HTTP {response.status_code})") from None
        if not isinstance(data, dict):
            raise NetworkError("Unexpected response from directory")
        return data

    def _send(self, method: str, action: str, **kwargs) -> dict:
        url = self._url()
        logger.debug("%s %s", method, action)
        try:
            if method == "GET":
                response = self.http.get(url, timeout=self.config.timeout, **kwargs)
            else:
                response = self.http.post(url, timeout=self.config.timeout, **kwargs)
        except requests.Timeout:
            logger.warning("Directory action %s timed out after %ss", action, self.config.timeout)
            raise Timeout() from None
        except requests.RequestException as exc:
            logger.warning("Directory action %s failed: %s", action, exc.__class__.__name__)
            raise NetworkError() from exc
        return self._decode(response)

    def _check(self, data: dict, action: str, default_error: str) -> dict:
        if data.get("success") is True:
            return data
        message = data.get("error") or default_error
        logger.warning("Directory action %s rejected: %s", action, message)
        raise classify_error(message)

    def _get(self, action: str, params: dict, default_error: str) -> dict:
        data = self._send("GET", action, params={"action": action, **params})
        return self._check(data, action, default_error)

    def _post(self, action: str, payload: dict, default_error: str) -> dict:
        body = {"password": self._password(), "action": action, **payload}
        data = self._send(
            "POST",
            action,
            data=json.dumps(body),
            # Script endpoints reject application/json preflights
            headers={"Content-Type": "text/plain"},
        )
        return self._check(data, action, default_error)

    def _read(self, record: dict) -> Member:
        return utils.with_derived_fields(utils.member_from_wire(record), self.today())

    # ---------- public ----------

    def lookup(self, member_id: str) -> Member:
        member_id = (member_id or "").strip()
        if not member_id:
            raise ValidationError("Please enter a Member ID")
        data = self._get("lookup", {"id": member_id}, "Member not found")
        record = data.get("member")
        if not record:
            raise NotFound()
        return self._read(record)

    # ---------- admin ----------

    def verify_credential(self, password: str) -> bool:
        """
        Try a privileged read with the password; cache it for the session on success.
        """
        if not password:
            return False
        data = self._send("GET", "getAll", params={"action": "getAll", "password": password})
        if data.get("success") is True:
            self.config.set_admin_password(password)
            logger.info("Admin credential verified")
            return True
        logger.info("Admin credential rejected")
        return False

    def list_all(self) -> list[Member]:
        data = self._get("getAll", {"password": self._password()}, "Failed to fetch members")
        members = []
        for record in data.get("members") or []:
            try:
                members.append(self._read(record))
            except ValidationError as exc:
                # Blank or half-filled sheet rows must not hide the rest of the list
                row_id = record.get("id") if isinstance(record, dict) else None
                logger.warning("Skipping unreadable member row %r: %s", row_id, exc.message)
        return members

    def create(self, new_member: NewMember) -> Member:
        self._password()
        errors = utils.validate_member_inputs(
            new_member.id, new_member.name, new_member.phone, new_member.age,
            new_member.weight, new_member.membership_type, new_member.start_date,
        )
        if errors:
            raise ValidationError(" ".join(errors))
        start = utils.parse_date(new_member.start_date)
        member = Member(
            id=new_member.id.strip(),
            name=new_member.name.strip(),
            phone=new_member.phone.strip(),
            age=utils.to_int(new_member.age),
            weight=utils.to_int(new_member.weight),
            membership_type=new_member.membership_type,
            start_date=start,
            end_date=utils.compute_end_date(start, new_member.membership_type),
        )
        self._post("addMember", {"member": member.to_wire()}, "Failed to add member")
        logger.info("Member %s added", member.id)
        return utils.with_derived_fields(member, self.today())

    def update(self, member_id: str, **fields) -> Member:
        """
        Merge the given fields into the stored record. The id cannot change.
        """
        self._password()
        new_id = fields.pop("id", member_id)
        if new_id != member_id:
            raise ValidationError("Member ID cannot be changed")
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError("Unknown member fields: " + ", ".join(sorted(unknown)))

        current = self.lookup(member_id)
        changes = dict(fields)
        if "start_date" in changes:
            changes["start_date"] = utils.parse_date(changes["start_date"])
        if "membership_type" in changes:
            utils.plan_duration_days(changes["membership_type"])
        for key in ("age", "weight"):
            if key in changes:
                changes[key] = utils.to_int(changes[key])

        member = replace(current, **changes, status=None, days_remaining=None)
        if (member.start_date, member.membership_type) != (current.start_date, current.membership_type):
            member = replace(member, end_date=utils.compute_end_date(member.start_date, member.membership_type))

        self._post("updateMember", {"member": member.to_wire()}, "Failed to update member")
        logger.info("Member %s updated", member_id)
        return utils.with_derived_fields(member, self.today())

    def renew(self, member_id: str, new_type: str, new_start_date) -> date:
        self._password()
        start = utils.parse_date(new_start_date)
        end = utils.compute_end_date(start, new_type)
        data = self._post(
            "renewMember",
            {
                "memberId": member_id,
                "membershipType": new_type,
                "startDate": start.isoformat(),
                "endDate": end.isoformat(),
            },
            "Failed to renew membership",
        )
        reported = data.get("newEndDate")
        if reported:
            try:
                if utils.parse_date(reported) != end:
                    logger.warning("Directory reported end date %s for %s, expected %s", reported, member_id, end)
            except ValidationError:
                logger.warning("Directory reported an unreadable end date for %s", member_id)
        logger.info("Member %s renewed until %s", member_id, end)
        return end

    def delete(self, member_id: str) -> None:
        self._password()
        self._post("deleteMember", {"memberId": member_id}, "Failed to delete member")
        logger.info("Member %s deleted", member_id)
