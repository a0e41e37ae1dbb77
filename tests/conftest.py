import json
from datetime import date, timedelta

import pytest

import db
from config import AppConfig
from directory import DirectoryClient

API_URL = "https://script.example.com/macros/s/test/exec"
ADMIN_PASSWORD = "letmein"
TODAY = date(2024, 1, 15)
PLAN_DAYS = {"3 Months": 90, "6 Months": 180, "1 Year": 365}


class FakeResponse:
    def __init__(self, payload=None, text=None, status_code=200):
        self.payload = payload
        self.text = text
        self.status_code = status_code

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class FakeSheetBackend:
    """
    In-memory stand-in for the spreadsheet web app: same actions, same response shapes.
    Stored rows carry stale status fields on purpose.
    """

    def __init__(self, password=ADMIN_PASSWORD):
        self.password = password
        self.rows = {}
        self.calls = []
        self.fail_with = None
        self.raw_response = None

    def seed(self, **row):
        row.setdefault("status", "Active")
        row.setdefault("daysRemaining", 999)
        self.rows[row["id"]] = row

    def _respond(self, payload):
        if self.fail_with is not None:
            raise self.fail_with
        if self.raw_response is not None:
            return self.raw_response
        return FakeResponse(payload)

    def get(self, url, params=None, timeout=None):
        self.calls.append(("GET", url, dict(params or {}), timeout))
        params = params or {}
        action = params.get("action")
        if action == "lookup":
            row = self.rows.get(params.get("id"))
            if not row:
                return self._respond({"success": False, "error": "Member not found"})
            return self._respond({"success": True, "member": dict(row)})
        if action == "getAll":
            if params.get("password") != self.password:
                return self._respond({"success": False, "error": "Invalid password"})
            return self._respond({"success": True, "members": [dict(r) for r in self.rows.values()]})
        return self._respond({"success": False, "error": "Unknown action"})

    def post(self, url, data=None, headers=None, timeout=None):
        body = json.loads(data)
        self.calls.append(("POST", url, body, timeout))
        if body.get("password") != self.password:
            return self._respond({"success": False, "error": "Invalid password"})

        action = body.get("action")
        if action == "addMember":
            member = body["member"]
            if member["id"] in self.rows:
                return self._respond({"success": False, "error": "Member ID already exists"})
            self.rows[member["id"]] = {**member, "status": "Active", "daysRemaining": 999}
            return self._respond({"success": True, "message": "Member added"})
        if action == "updateMember":
            member = body["member"]
            if member["id"] not in self.rows:
                return self._respond({"success": False, "error": "Member not found"})
            self.rows[member["id"]].update(member)
            return self._respond({"success": True})
        if action == "renewMember":
            row = self.rows.get(body["memberId"])
            if not row:
                return self._respond({"success": False, "error": "Member not found"})
            start = date.fromisoformat(body["startDate"])
            end = start + timedelta(days=PLAN_DAYS[body["membershipType"]])
            row.update(membershipType=body["membershipType"], startDate=start.isoformat(), endDate=end.isoformat())
            return self._respond({"success": True, "newEndDate": end.isoformat()})
        if action == "deleteMember":
            if self.rows.pop(body["memberId"], None) is None:
                return self._respond({"success": False, "error": "Member not found"})
            return self._respond({"success": True})
        return self._respond({"success": False, "error": "Unknown action"})


@pytest.fixture(autouse=True)
def settings_db(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "DB_FILE", tmp_path / "settings.db")
    monkeypatch.delenv("GYM_API_URL", raising=False)
    monkeypatch.delenv("GYM_API_TIMEOUT", raising=False)
    monkeypatch.setenv("GYM_TIMEZONE", "UTC")
    db.init_db()
    return tmp_path / "settings.db"


@pytest.fixture
def backend():
    backend = FakeSheetBackend()
    backend.seed(
        id="GYM001",
        name="Ravi Kumar",
        phone="9876543210",
        age=28,
        weight=72,
        membershipType="3 Months",
        startDate="2023-12-01",
        endDate="2024-02-29",
    )
    backend.seed(
        id="GYM002",
        name="Sneha Reddy",
        phone="9123456780",
        age="31",
        weight="58.0",
        membershipType="6 Months",
        startDate="2023-06-01T00:00:00.000Z",
        endDate="2023-11-28T00:00:00.000Z",
    )
    return backend


@pytest.fixture
def config():
    cfg = AppConfig.load(session={})
    cfg.save_api_url(API_URL)
    return cfg


@pytest.fixture
def client(config, backend):
    return DirectoryClient(config, session=backend, today=lambda: TODAY)


@pytest.fixture
def admin_client(client):
    assert client.verify_credential(ADMIN_PASSWORD)
    return client
