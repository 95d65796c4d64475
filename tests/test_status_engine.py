"""
Tests for the capacity & status engine (ApplicationService).

Submission, status transitions and the counter invariants they maintain.
Run: pytest tests/test_status_engine.py -v
"""

import asyncio
from datetime import timedelta

import pytest
from bson import ObjectId

from onboard.errors import (
    CapacityExceededError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from onboard.models.application import PENDING, REJECTED, SELECTED, SHORTLISTED
from onboard.models.session import session_is_open
from onboard.services.application_service import counter_patch
from onboard.utils.dates import utcnow


async def _session(db, session):
    return await db.sessions.find_one({"_id": session["_id"]})


async def assert_counters_consistent(db, session_id):
    session = await db.sessions.find_one({"_id": session_id})
    apps = await db.applications.find({"session": session_id}).to_list(None)

    stats = session["applicant_stats"]
    assert sum(stats.values()) == len(apps)
    for status in (PENDING, SHORTLISTED, SELECTED, REJECTED):
        assert stats[status.lower()] == len([a for a in apps if a["status"] == status])
    assert session["current_applications"] == stats["selected"]
    assert session["current_applications"] <= session["capacity"]


# ---------------------------------------------------------------------------
# counter_patch
# ---------------------------------------------------------------------------

class TestCounterPatch:

    def test_pending_to_selected_takes_a_seat(self):
        assert counter_patch(PENDING, SELECTED) == {
            "applicant_stats.pending": -1,
            "applicant_stats.selected": 1,
            "current_applications": 1,
        }

    def test_selected_to_rejected_frees_a_seat(self):
        assert counter_patch(SELECTED, REJECTED) == {
            "applicant_stats.selected": -1,
            "applicant_stats.rejected": 1,
            "current_applications": -1,
        }

    def test_pending_to_shortlisted_leaves_capacity_alone(self):
        patch = counter_patch(PENDING, SHORTLISTED)
        assert "current_applications" not in patch


# ---------------------------------------------------------------------------
# submit_application
# ---------------------------------------------------------------------------

class TestSubmitApplication:

    async def test_creates_pending_application(self, db, applications, make_org, make_user, make_session):
        org = await make_org()
        seeker = await make_user()
        session = await make_session(org)

        application = await applications.submit_application(seeker["_id"], session["_id"])

        assert application["status"] == PENDING
        assert application["organization_name"] == "Acme Corp"
        stored = await _session(db, session)
        assert stored["applicant_stats"]["pending"] == 1
        assert stored["current_applications"] == 0
        await assert_counters_consistent(db, session["_id"])

    async def test_duplicate_is_conflict(self, db, applications, make_org, make_user, make_session):
        org = await make_org()
        seeker = await make_user()
        session = await make_session(org)
        await applications.submit_application(seeker["_id"], session["_id"])

        with pytest.raises(ConflictError, match="already applied"):
            await applications.submit_application(seeker["_id"], session["_id"])

        assert await db.applications.count_documents({"session": session["_id"]}) == 1
        await assert_counters_consistent(db, session["_id"])

    async def test_deadline_passed_creates_nothing(self, db, applications, make_org, make_user, make_session):
        org = await make_org()
        seeker = await make_user()
        session = await make_session(org, registration_deadline=utcnow() - timedelta(minutes=1))

        with pytest.raises(ConflictError, match="deadline"):
            await applications.submit_application(seeker["_id"], session["_id"])

        assert await db.applications.count_documents({}) == 0

    async def test_submitting_exactly_at_the_deadline_is_accepted(self, db, applications, monkeypatch, make_org, make_user, make_session):
        org = await make_org()
        seeker = await make_user()
        deadline = (utcnow() + timedelta(days=1)).replace(microsecond=0)
        session = await make_session(org, registration_deadline=deadline)
        monkeypatch.setattr("onboard.services.application_service.utcnow", lambda: deadline)

        assert session_is_open(session, now=deadline)
        application = await applications.submit_application(seeker["_id"], session["_id"])

        assert application["status"] == PENDING
        assert await db.applications.count_documents({"session": session["_id"]}) == 1

    def test_session_closes_just_after_the_deadline(self):
        deadline = utcnow()
        session = {"status": "Active", "registration_deadline": deadline, "capacity": 5}

        assert session_is_open(session, now=deadline)
        assert not session_is_open(session, now=deadline + timedelta(seconds=1))

    async def test_private_session_is_forbidden(self, applications, make_org, make_user, make_session):
        org = await make_org()
        seeker = await make_user()
        session = await make_session(org, is_private=True)

        with pytest.raises(ForbiddenError):
            await applications.submit_application(seeker["_id"], session["_id"])

    async def test_full_session_is_conflict(self, applications, make_org, make_user, make_session):
        org = await make_org()
        seeker = await make_user()
        session = await make_session(org, capacity=1, current_applications=1)

        with pytest.raises(ConflictError, match="full capacity"):
            await applications.submit_application(seeker["_id"], session["_id"])

    async def test_unknown_session_is_not_found(self, applications, make_user):
        seeker = await make_user()

        with pytest.raises(NotFoundError):
            await applications.submit_application(seeker["_id"], ObjectId())

    async def test_submission_is_logged(self, db, applications, make_org, make_user, make_session):
        org = await make_org()
        seeker = await make_user()
        session = await make_session(org)

        application = await applications.submit_application(seeker["_id"], session["_id"])

        entry = await db.activity_logs.find_one({"user": seeker["_id"]})
        assert entry["action"] == "APPLICATION_SUBMIT"
        assert entry["target_id"] == application["_id"]


# ---------------------------------------------------------------------------
# update_application_status
# ---------------------------------------------------------------------------

class TestUpdateApplicationStatus:

    async def test_approve_takes_a_seat(self, db, applications, make_org, make_user, make_session, make_application):
        org = await make_org()
        session = await make_session(org)
        app = await make_application(await make_user(), session)

        updated = await applications.update_application_status(org["_id"], app["_id"], SELECTED)

        assert updated["status"] == SELECTED
        assert updated["updated_by"] == org["_id"]
        stored = await _session(db, session)
        assert stored["current_applications"] == 1
        assert stored["applicant_stats"]["selected"] == 1
        assert stored["applicant_stats"]["pending"] == 0
        await assert_counters_consistent(db, session["_id"])

    async def test_same_status_is_a_no_op(self, db, applications, make_org, make_user, make_session, make_application):
        org = await make_org()
        session = await make_session(org)
        app = await make_application(await make_user(), session)

        await applications.update_application_status(org["_id"], app["_id"], SELECTED)
        before = await _session(db, session)
        await applications.update_application_status(org["_id"], app["_id"], SELECTED)
        after = await _session(db, session)

        assert after["current_applications"] == before["current_applications"] == 1
        assert after["applicant_stats"] == before["applicant_stats"]

    async def test_capacity_is_never_exceeded(self, db, applications, make_org, make_user, make_session, make_application):
        org = await make_org()
        session = await make_session(org, capacity=2)
        a = await make_application(await make_user(), session)
        b = await make_application(await make_user(), session)
        c = await make_application(await make_user(), session)

        await applications.update_application_status(org["_id"], a["_id"], SELECTED)
        await applications.update_application_status(org["_id"], b["_id"], SELECTED)

        with pytest.raises(CapacityExceededError):
            await applications.update_application_status(org["_id"], c["_id"], SELECTED)

        stored = await _session(db, session)
        assert stored["current_applications"] == 2
        assert (await db.applications.find_one({"_id": c["_id"]}))["status"] == PENDING
        await assert_counters_consistent(db, session["_id"])

        # Rejecting a selected applicant frees the seat for the third one
        await applications.update_application_status(org["_id"], a["_id"], REJECTED)
        assert (await _session(db, session))["current_applications"] == 1

        await applications.update_application_status(org["_id"], c["_id"], SELECTED)
        assert (await _session(db, session))["current_applications"] == 2
        await assert_counters_consistent(db, session["_id"])

    async def test_concurrent_approvals_respect_capacity(self, db, applications, make_org, make_user, make_session, make_application):
        org = await make_org()
        session = await make_session(org, capacity=2)
        apps = [await make_application(await make_user(), session) for _ in range(4)]

        results = await asyncio.gather(
            *[applications.update_application_status(org["_id"], app["_id"], SELECTED) for app in apps],
            return_exceptions=True,
        )

        approved = [r for r in results if not isinstance(r, Exception)]
        assert len(approved) == 2
        assert all(isinstance(r, ConflictError) for r in results if isinstance(r, Exception))
        assert (await _session(db, session))["current_applications"] == 2
        await assert_counters_consistent(db, session["_id"])

    async def test_other_organization_is_forbidden(self, db, applications, make_org, make_user, make_session, make_application):
        owner = await make_org()
        other = await make_org(company_name="Other Inc")
        session = await make_session(owner)
        app = await make_application(await make_user(), session)

        with pytest.raises(ForbiddenError):
            await applications.update_application_status(other["_id"], app["_id"], SELECTED)

        assert (await db.applications.find_one({"_id": app["_id"]}))["status"] == PENDING
        assert (await _session(db, session))["current_applications"] == 0

    async def test_unknown_application_is_not_found(self, applications, make_org):
        org = await make_org()

        with pytest.raises(NotFoundError):
            await applications.update_application_status(org["_id"], ObjectId(), SELECTED)

    async def test_unknown_status_is_rejected(self, applications, make_org, make_user, make_session, make_application):
        org = await make_org()
        session = await make_session(org)
        app = await make_application(await make_user(), session)

        with pytest.raises(ValidationError):
            await applications.update_application_status(org["_id"], app["_id"], "Hired")

    async def test_applicant_is_notified(self, applications, channel, make_org, make_user, make_session, make_application):
        org = await make_org()
        seeker = await make_user()
        session = await make_session(org, title="Data Bootcamp")
        app = await make_application(seeker, session)

        await applications.update_application_status(org["_id"], app["_id"], SHORTLISTED)

        [payload] = channel.sent_to(seeker["_id"])
        assert payload["type"] == "status_change"
        assert payload["message"] == 'Your application for "Data Bootcamp" is now Shortlisted.'

    async def test_every_transition_keeps_counters_consistent(self, db, applications, make_org, make_user, make_session, make_application):
        org = await make_org()
        session = await make_session(org, capacity=3)
        app = await make_application(await make_user(), session)

        for status in (SHORTLISTED, SELECTED, REJECTED, PENDING, SELECTED, SHORTLISTED):
            await applications.update_application_status(org["_id"], app["_id"], status)
            await assert_counters_consistent(db, session["_id"])


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

class TestListings:

    async def test_job_seeker_sees_own_applications_with_titles(self, applications, make_org, make_user, make_session, make_application):
        org = await make_org()
        seeker = await make_user()
        first = await make_session(org, title="First")
        second = await make_session(org, title="Second")
        await make_application(seeker, first)
        await make_application(seeker, second)
        await make_application(await make_user(), first)

        result = await applications.list_job_seeker_applications(seeker["_id"])

        assert sorted(app["session_title"] for app in result) == ["First", "Second"]

    async def test_organization_filter_by_status(self, applications, make_org, make_user, make_session, make_application):
        org = await make_org()
        session = await make_session(org)
        seeker = await make_user(personal_info={"full_name": "Ada Lovelace"})
        await make_application(seeker, session, status=SELECTED)
        await make_application(await make_user(), session)

        result = await applications.list_organization_applications(org["_id"], status=SELECTED)

        assert len(result) == 1
        assert result[0]["job_seeker_name"] == "Ada Lovelace"
        assert result[0]["session_title"] == "Backend Onboarding"

    async def test_session_applicants_requires_ownership(self, applications, make_org, make_session):
        owner = await make_org()
        session = await make_session(owner)

        with pytest.raises(ForbiddenError):
            await applications.session_applicants((await make_org())["_id"], session["_id"])
