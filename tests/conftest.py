"""
Shared fixtures.

MongoDB is replaced by mongomock-motor and the real-time channel by a
recording fake, so the whole suite runs without external services.
Run: pytest -v
"""

import asyncio
from datetime import timedelta

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from onboard.database import ensure_indexes
from onboard.dependencies import init_services
from onboard.main import app
from onboard.models.application import PENDING, Application
from onboard.models.session import Session
from onboard.models.user import JOB_SEEKER, ORGANIZATION, User
from onboard.services.activity_logger import ActivityLogger
from onboard.services.application_service import ApplicationService
from onboard.services.discovery_service import DiscoveryService
from onboard.services.notification_service import NotificationDispatcher
from onboard.services.session_service import SessionService
from onboard.services.wishlist_service import WishlistService
from onboard.utils.dates import utcnow


# ---------------------------------------------------------------------------
# Real-time channel fakes
# ---------------------------------------------------------------------------

class RecordingChannel:
    """Keeps every (user_id, event, payload) it was asked to deliver."""

    def __init__(self):
        self.sent = []

    async def send_to_user(self, user_id, event, payload):
        self.sent.append((user_id, event, payload))

    def sent_to(self, user_id):
        return [payload for uid, _, payload in self.sent if uid == str(user_id)]


class FailingChannel(RecordingChannel):
    """Raises for the given user ids and records everything else."""

    def __init__(self, fail_for=()):
        super().__init__()
        self.fail_for = {str(uid) for uid in fail_for}

    async def send_to_user(self, user_id, event, payload):
        if user_id in self.fail_for:
            raise ConnectionError(f"socket for {user_id} is gone")
        await super().send_to_user(user_id, event, payload)


# ---------------------------------------------------------------------------
# Database & services
# ---------------------------------------------------------------------------

@pytest.fixture
async def db():
    database = AsyncMongoMockClient()["onboard_test"]
    await ensure_indexes(database)
    return database


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def activity(db):
    return ActivityLogger(db)


@pytest.fixture
def dispatcher(db, channel):
    return NotificationDispatcher(db, channel, reminder_window_minutes=30)


@pytest.fixture
def applications(db, dispatcher, activity):
    return ApplicationService(db, dispatcher, activity)


@pytest.fixture
def sessions(db, activity):
    return SessionService(db, activity)


@pytest.fixture
def discovery(db):
    return DiscoveryService(db, page_size=12)


@pytest.fixture
def wishlist(db):
    return WishlistService(db)


# ---------------------------------------------------------------------------
# Document factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(db):
    async def _make(role=JOB_SEEKER, is_active=True, **extra):
        doc = User(
            email=f"{role.replace('_', '')}.{ObjectId()}@onboard.io",
            password="not-a-real-hash",
            role=role,
            is_active=is_active,
            **extra,
        ).to_mongo()
        result = await db.users.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    return _make


@pytest.fixture
def make_org(make_user):
    async def _make(company_name="Acme Corp", **extra):
        return await make_user(
            ORGANIZATION, company_info={"company_name": company_name, "logo_url": "https://acme.io/logo.png"},
            **extra,
        )

    return _make


@pytest.fixture
def make_session(db):
    async def _make(org, **overrides):
        now = utcnow()
        data = dict(
            title="Backend Onboarding",
            description="First week with the platform team",
            start_date=now + timedelta(days=10),
            end_date=now + timedelta(days=11),
            registration_deadline=now + timedelta(days=5),
            capacity=2,
            location="Berlin",
            tags=["python", "backend"],
        )
        data.update(overrides)
        doc = Session(organization=org["_id"], **data).to_mongo()
        result = await db.sessions.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    return _make


@pytest.fixture
def make_application(db):
    """Insert an application directly, keeping the session counters in step."""

    async def _make(job_seeker, session, status=PENDING):
        doc = Application(
            job_seeker=job_seeker["_id"], session=session["_id"], status=status,
            organization_name="Acme Corp",
        ).to_mongo()
        result = await db.applications.insert_one(doc)
        doc["_id"] = result.inserted_id

        inc = {f"applicant_stats.{status.lower()}": 1}
        if status == "Selected":
            inc["current_applications"] = 1
        await db.sessions.update_one({"_id": session["_id"]}, {"$inc": inc})
        return doc

    return _make


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
def api_db():
    database = AsyncMongoMockClient()["onboard_api_test"]
    asyncio.run(ensure_indexes(database))
    return database


@pytest.fixture
def client(api_db, channel):
    # Startup hooks are skipped (no ``with``), services are wired by hand
    init_services(app, api_db, channel)
    return TestClient(app)
