"""Integration tests for the meeting stake API."""
from datetime import timedelta

import pytest

from meetstake.core.utils import utcnow
from meetstake.services.staking import generate_attendance_code, get_stake_info, submit_attendance_code
from tests.utils import ALICE, BOB, CAROL, ORGANIZER, parse_datetime, seed_meeting


def _create_payload(meeting_id="mtg-api", starts_in=timedelta(hours=2), **overrides):
    start = utcnow() + starts_in
    payload = {
        "meeting_id": meeting_id,
        "event_id": "gcal-abc123",
        "organizer": ORGANIZER,
        "required_stake": "10",
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(hours=1)).isoformat(),
    }
    payload.update(overrides)
    return payload


def _assert_error(response, status_code, code):
    assert response.status_code == status_code
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == code
    return body["error"]


@pytest.mark.integration
class TestCreateMeeting:
    """Test POST /api/v1/meetings."""

    def test_create_success(self, client):
        payload = _create_payload()
        response = client.post("/api/v1/meetings", json=payload)

        assert response.status_code == 201
        data = response.json()
        assert data["meeting_id"] == "mtg-api"
        start = parse_datetime(payload["start_time"])
        end = parse_datetime(payload["end_time"])
        assert parse_datetime(data["staking_deadline"]) == start - timedelta(hours=1)
        assert parse_datetime(data["check_in_deadline"]) == end + timedelta(minutes=15)

    def test_create_duplicate(self, client):
        client.post("/api/v1/meetings", json=_create_payload())
        response = client.post("/api/v1/meetings", json=_create_payload())

        _assert_error(response, 409, "conflict")

    def test_create_in_past(self, client):
        response = client.post("/api/v1/meetings", json=_create_payload(starts_in=-timedelta(hours=1)))

        error = _assert_error(response, 400, "validation_error")
        assert error["message"] == "Start time must be in the future"

    def test_create_end_before_start(self, client):
        payload = _create_payload()
        payload["end_time"], payload["start_time"] = payload["start_time"], payload["end_time"]

        error = _assert_error(client.post("/api/v1/meetings", json=payload), 400, "validation_error")
        assert "End time must be after start time" in error["message"]

    @pytest.mark.parametrize("required_stake", ["0", "-5", "abc"])
    def test_create_invalid_stake(self, client, required_stake):
        response = client.post("/api/v1/meetings", json=_create_payload(required_stake=required_stake))
        assert response.status_code == 422

    def test_create_unknown_field(self, client):
        response = client.post("/api/v1/meetings", json=_create_payload(reward_pool="100"))
        assert response.status_code == 422

    def test_create_missing_field(self, client):
        payload = _create_payload()
        del payload["organizer"]
        assert client.post("/api/v1/meetings", json=payload).status_code == 422

    def test_create_bad_meeting_id(self, client):
        response = client.post("/api/v1/meetings", json=_create_payload(meeting_id="bad id/../"))
        assert response.status_code == 422


@pytest.mark.integration
class TestStakeEndpoint:
    """Test POST /api/v1/meetings/{id}/stakes."""

    @pytest.fixture
    def meeting_id(self, client):
        client.post("/api/v1/meetings", json=_create_payload())
        return "mtg-api"

    def test_stake_success(self, client, meeting_id, db_session):
        response = client.post(f"/api/v1/meetings/{meeting_id}/stakes", json={"wallet_address": ALICE, "amount": "10"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Successfully staked for meeting"}
        assert get_stake_info(db_session, meeting_id, ALICE) is not None

    def test_stake_numeric_amount(self, client, meeting_id):
        response = client.post(f"/api/v1/meetings/{meeting_id}/stakes", json={"wallet_address": ALICE, "amount": 10})
        assert response.status_code == 200

    def test_stake_wrong_amount(self, client, meeting_id):
        response = client.post(f"/api/v1/meetings/{meeting_id}/stakes", json={"wallet_address": ALICE, "amount": "5"})

        error = _assert_error(response, 400, "validation_error")
        assert error["message"] == "Stake amount must equal the required stake of 10"

    def test_stake_twice(self, client, meeting_id):
        body = {"wallet_address": ALICE, "amount": "10"}
        client.post(f"/api/v1/meetings/{meeting_id}/stakes", json=body)
        response = client.post(f"/api/v1/meetings/{meeting_id}/stakes", json=body)

        error = _assert_error(response, 409, "already_staked")
        assert error["message"] == "Already staked for this meeting"

    def test_stake_unknown_meeting(self, client):
        response = client.post("/api/v1/meetings/nope/stakes", json={"wallet_address": ALICE, "amount": "10"})
        _assert_error(response, 404, "not_found")

    def test_stake_after_deadline(self, client, db_session):
        seed_meeting(db_session, "closing", starts_in=timedelta(minutes=30))

        response = client.post("/api/v1/meetings/closing/stakes", json={"wallet_address": ALICE, "amount": "10"})

        error = _assert_error(response, 400, "precondition_failed")
        assert error["deadline"] is not None
        assert "Staking period has closed" in error["message"]

    def test_stake_missing_wallet(self, client, meeting_id):
        response = client.post(f"/api/v1/meetings/{meeting_id}/stakes", json={"amount": "10"})
        assert response.status_code == 422


@pytest.mark.integration
class TestAttendanceCodeEndpoints:
    """Test attendance code generation."""

    @pytest.fixture
    def running(self, db_session):
        seed_meeting(db_session, "running", starts_in=-timedelta(minutes=10), stakers=[ALICE, BOB])
        return "running"

    def test_generate(self, client, running):
        response = client.post(f"/api/v1/meetings/{running}/attendance-code", json={"organizer_address": ORGANIZER})

        assert response.status_code == 200
        data = response.json()
        assert len(data["code"]) == 6
        assert data["code"] == data["code"].upper()
        assert parse_datetime(data["valid_until"]) > utcnow()

    def test_generate_returns_same_code(self, client, running):
        url = f"/api/v1/meetings/{running}/attendance-code"
        first = client.post(url, json={"organizer_address": ORGANIZER}).json()
        second = client.post(url, json={"organizer_address": ORGANIZER}).json()
        assert first == second

    def test_generate_not_organizer(self, client, running):
        response = client.post(f"/api/v1/meetings/{running}/attendance-code", json={"organizer_address": ALICE})
        _assert_error(response, 403, "permission_denied")

    def test_generate_before_start(self, client, db_session):
        seed_meeting(db_session, "upcoming", starts_in=timedelta(hours=2))

        response = client.post("/api/v1/meetings/upcoming/attendance-code", json={"organizer_address": ORGANIZER})

        error = _assert_error(response, 400, "precondition_failed")
        assert error["deadline"] is not None

    def test_regenerate_disabled(self, client, running):
        client.post(f"/api/v1/meetings/{running}/attendance-code", json={"organizer_address": ORGANIZER})
        response = client.post(
            f"/api/v1/meetings/{running}/attendance-code/regenerate",
            json={"organizer_address": ORGANIZER},
        )
        _assert_error(response, 409, "code_immutable")

    def test_regenerate_enabled(self, client, running, override_settings):
        override_settings(ALLOW_CODE_REGENERATION=True)
        url = f"/api/v1/meetings/{running}/attendance-code"
        client.post(url, json={"organizer_address": ORGANIZER})

        response = client.post(f"{url}/regenerate", json={"organizer_address": ORGANIZER})

        assert response.status_code == 200
        assert len(response.json()["code"]) == 6


@pytest.mark.integration
class TestCheckinEndpoint:
    """Test POST /api/v1/meetings/{id}/checkins."""

    @pytest.fixture
    def code(self, db_session):
        seed_meeting(db_session, "running", starts_in=-timedelta(minutes=10), stakers=[ALICE, BOB])
        return generate_attendance_code(db_session, "running", ORGANIZER).code

    def test_checkin_success(self, client, code, db_session):
        response = client.post("/api/v1/meetings/running/checkins", json={"wallet_address": ALICE, "code": code.lower()})

        assert response.status_code == 200
        assert response.json()["message"] == "Attendance confirmed successfully"
        db_session.expire_all()
        assert get_stake_info(db_session, "running", ALICE).has_checked_in is True

    def test_checkin_invalid_code(self, client, code, db_session):
        wrong = "AAAAAA" if code != "AAAAAA" else "BBBBBB"
        response = client.post("/api/v1/meetings/running/checkins", json={"wallet_address": ALICE, "code": wrong})

        _assert_error(response, 400, "invalid_code")
        db_session.expire_all()
        assert get_stake_info(db_session, "running", ALICE).has_checked_in is False

    def test_checkin_twice(self, client, code):
        body = {"wallet_address": ALICE, "code": code}
        client.post("/api/v1/meetings/running/checkins", json=body)
        response = client.post("/api/v1/meetings/running/checkins", json=body)
        _assert_error(response, 409, "already_checked_in")

    def test_checkin_not_staked(self, client, code):
        response = client.post("/api/v1/meetings/running/checkins", json={"wallet_address": CAROL, "code": code})
        _assert_error(response, 403, "not_staked")

    def test_checkin_malformed_code(self, client, code):
        response = client.post("/api/v1/meetings/running/checkins", json={"wallet_address": ALICE, "code": "AB-12"})
        assert response.status_code == 422

    def test_checkin_expired(self, client, db_session):
        seed_meeting(db_session, "over", starts_in=-timedelta(hours=3), stakers=[ALICE])

        response = client.post("/api/v1/meetings/over/checkins", json={"wallet_address": ALICE, "code": "ABCDEF"})

        error = _assert_error(response, 400, "code_expired")
        assert error["deadline"] is not None


@pytest.mark.integration
class TestSettlementEndpoint:
    """Test POST /api/v1/meetings/{id}/settlement."""

    @pytest.fixture
    def finished(self, db_session):
        start = seed_meeting(db_session, "finished", starts_in=-timedelta(hours=3), stakers=[ALICE, BOB])
        code = generate_attendance_code(db_session, "finished", ORGANIZER, now=start + timedelta(minutes=5)).code
        submit_attendance_code(db_session, "finished", code, ALICE, now=start + timedelta(minutes=10))
        return "finished"

    def test_settle(self, client, finished):
        response = client.post(f"/api/v1/meetings/{finished}/settlement")

        assert response.status_code == 200
        assert response.json() == {
            "meeting_id": "finished",
            "refunded_total": "10",
            "forfeited_total": "10",
            "refunded_count": 1,
            "forfeited_count": 1,
        }

    def test_settle_twice(self, client, finished):
        client.post(f"/api/v1/meetings/{finished}/settlement")
        response = client.post(f"/api/v1/meetings/{finished}/settlement")
        _assert_error(response, 409, "already_settled")

    def test_settle_too_early(self, client, db_session):
        seed_meeting(db_session, "running", starts_in=-timedelta(minutes=10), stakers=[ALICE])

        response = client.post("/api/v1/meetings/running/settlement")

        error = _assert_error(response, 400, "precondition_failed")
        assert parse_datetime(error["deadline"]) > utcnow()

    def test_settle_unknown(self, client):
        _assert_error(client.post("/api/v1/meetings/nope/settlement"), 404, "not_found")


@pytest.mark.integration
class TestStatusEndpoints:
    """Test read-only status projections."""

    def test_status(self, client, db_session):
        seed_meeting(db_session, "upcoming", starts_in=timedelta(hours=3), stakers=[ALICE, BOB])

        response = client.get("/api/v1/meetings/upcoming", params={"wallet_address": ALICE})

        assert response.status_code == 200
        data = response.json()
        assert data["meeting"]["status"] == "upcoming"
        assert data["meeting"]["required_stake"] == "10"
        assert data["stats"] == {
            "total_staked": "20",
            "total_stakers": 2,
            "total_attended": 0,
            "total_absent": 2,
        }
        assert data["user_stake"]["wallet_address"] == ALICE
        assert data["user_stake"]["amount"] == "10"
        assert [p["wallet_address"] for p in data["participants"]] == ["0x179b...5e31", "0xf3fc...5eee"]
        assert data["settlement"] is None

    def test_status_without_wallet(self, client, db_session):
        seed_meeting(db_session, "upcoming", starts_in=timedelta(hours=3))
        data = client.get("/api/v1/meetings/upcoming").json()
        assert data["user_stake"] is None

    def test_status_settled(self, client, db_session):
        seed_meeting(db_session, "finished", starts_in=-timedelta(hours=3), stakers=[ALICE])
        client.post("/api/v1/meetings/finished/settlement")

        data = client.get("/api/v1/meetings/finished").json()

        assert data["meeting"]["status"] == "settled"
        assert data["settlement"]["forfeited_total"] == "10"

    def test_status_not_found(self, client):
        _assert_error(client.get("/api/v1/meetings/missing"), 404, "not_found")

    def test_status_bad_wallet(self, client, db_session):
        seed_meeting(db_session, "upcoming", starts_in=timedelta(hours=3))
        response = client.get("/api/v1/meetings/upcoming", params={"wallet_address": "0x<script>"})
        _assert_error(response, 400, "validation_error")

    def test_wallet_meetings(self, client, db_session):
        seed_meeting(db_session, "second", starts_in=timedelta(hours=5), stakers=[ALICE])
        seed_meeting(db_session, "first", starts_in=timedelta(hours=3), stakers=[ALICE])
        seed_meeting(db_session, "other", starts_in=timedelta(hours=3), stakers=[BOB])

        response = client.get(f"/api/v1/wallets/{ALICE}/meetings")

        assert response.status_code == 200
        assert [m["meeting_id"] for m in response.json()] == ["first", "second"]

    def test_wallet_meetings_includes_organized(self, client, db_session):
        seed_meeting(db_session, "first", starts_in=timedelta(hours=3))
        data = client.get(f"/api/v1/wallets/{ORGANIZER}/meetings").json()
        assert [m["meeting_id"] for m in data] == ["first"]
