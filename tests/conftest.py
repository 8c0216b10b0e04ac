"""
Pytest configuration for Reimburzi tests.

Sets up a test environment and in-memory stand-ins for MongoDB,
Twilio, Google Vision and OpenAI. No test touches the network.
"""
import os
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import DuplicateKeyError

# Set test environment variables before the app settings are created
os.environ["ENVIRONMENT"] = "development"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["TWILIO_ACCOUNT_SID"] = "ACtest"
os.environ["TWILIO_AUTH_TOKEN"] = "test-token"
os.environ["TWILIO_WHATSAPP_NUMBER"] = "whatsapp:+14155238886"
os.environ["TWILIO_RETRY_DELAY_SECONDS"] = "0"
os.environ["OPENAI_API_KEY"] = ""
os.environ["DEFAULT_CURRENCY"] = "AED"
os.environ["ONBOARDING_TTL_MINUTES"] = "0"

from app.db import mongo  # noqa: E402
from app.flow import dispatcher  # noqa: E402
from app.services.onboarding_service import OnboardingStore  # noqa: E402
from app.services.twilio_service import twilio_service  # noqa: E402


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for field, condition in query.items():
        value = document.get(field)
        if isinstance(condition, dict):
            if "$gte" in condition and (value is None or value < condition["$gte"]):
                return False
        elif value != condition:
            return False
    return True


def _project(document: Dict[str, Any], projection: Optional[Dict[str, int]]) -> Dict[str, Any]:
    result = dict(document)
    if projection and projection.get("_id") == 0:
        result.pop("_id", None)
    return result


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    def sort(self, key: str, direction: int = 1):
        self._documents.sort(key=lambda d: d.get(key), reverse=direction == -1)
        return self

    async def to_list(self, length: Optional[int] = None):
        return self._documents if length is None else self._documents[:length]


class FakeCollection:
    """The slice of the motor collection API the services use."""

    def __init__(self, unique_fields=()):
        self.documents: List[Dict[str, Any]] = []
        self.unique_fields = unique_fields

    async def find_one(self, query, projection=None):
        for document in self.documents:
            if _matches(document, query):
                return _project(document, projection)
        return None

    def find(self, query, projection=None):
        return FakeCursor([_project(d, projection) for d in self.documents if _matches(d, query)])

    async def insert_one(self, document):
        for field in self.unique_fields:
            if any(existing.get(field) == document.get(field) for existing in self.documents):
                raise DuplicateKeyError(f"duplicate key: {field}", code=11000)
        # Like motor, mutate the caller's dict
        document["_id"] = uuid.uuid4().hex
        self.documents.append(dict(document))

    async def create_index(self, *args, **kwargs):
        return kwargs.get("name", "index")


class FakeDatabase:
    def __init__(self):
        self.collections = {
            mongo.USERS_COLLECTION: FakeCollection(unique_fields=("id", "phone")),
            mongo.EXPENSES_COLLECTION: FakeCollection(unique_fields=("id",)),
        }

    def __getitem__(self, name):
        return self.collections[name]

    @property
    def users(self) -> FakeCollection:
        return self.collections[mongo.USERS_COLLECTION]

    @property
    def expenses(self) -> FakeCollection:
        return self.collections[mongo.EXPENSES_COLLECTION]


@pytest.fixture
def fake_db(monkeypatch):
    """In-memory database installed behind app.db.mongo."""
    db = FakeDatabase()
    monkeypatch.setattr(mongo, "_database", db)
    return db


@pytest.fixture
def sent_messages(monkeypatch):
    """
    Replaces Twilio sending; returns the list of (phone, text) sent.
    """
    messages = []

    async def fake_send(to_phone, message):
        messages.append((to_phone, message))
        return {"success": True, "message_sid": f"SM{len(messages):04d}", "status": "queued"}

    monkeypatch.setattr(twilio_service, "send_message", AsyncMock(side_effect=fake_send))
    return messages


@pytest.fixture
def store(monkeypatch):
    """Fresh onboarding store, also used by the webhook route."""
    onboarding = OnboardingStore(ttl_minutes=0)
    monkeypatch.setattr(dispatcher, "onboarding_store", onboarding)
    return onboarding


@pytest.fixture
def registered_user(fake_db):
    now = datetime.utcnow()
    user = {
        "id": "user-1",
        "phone": "+971500000001",
        "name": "Aisha",
        "email": "aisha@example.com",
        "company_id": "default",
        "created_at": now,
        "updated_at": now,
    }
    fake_db.users.documents.append(dict(user))
    return user


def add_expense(db: FakeDatabase, user_id: str, amount: float, date: datetime,
                category: Optional[str] = "Food", **extra) -> Dict[str, Any]:
    expense = {
        "id": uuid.uuid4().hex,
        "user_id": user_id,
        "image_url": None,
        "merchant": extra.pop("merchant", "Shop"),
        "amount": amount,
        "date": date,
        "category": category,
        "currency": "AED",
        "language": "en",
        "status": "pending",
        "created_at": date,
        "updated_at": date,
    }
    expense.update(extra)
    db.expenses.documents.append(expense)
    return expense
