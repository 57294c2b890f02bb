import pytest

from conftest import LESSON_DAY, booking_payload
from models import db
from models.tutor import Tutor
from models.tutor_shift import TutorShift
from services.availability import find_available_tutors
from utils.slots import build_subject_tag, parse_date


def test_build_subject_tag():
    assert build_subject_tag("算数", "小学") == "小学算数"
    assert build_subject_tag("小学算数", "小学") == "小学算数"
    assert build_subject_tag(" 数学 ", None) == "数学"


def test_parse_date_rejects_other_formats():
    assert parse_date("2025-05-01") == LESSON_DAY
    with pytest.raises(ValueError):
        parse_date("2025/05/01")
    with pytest.raises(ValueError):
        parse_date(None)


def test_finds_open_shift_for_tutor_subject(app, tutor):
    with app.app_context():
        rows = find_available_tutors("算数", LESSON_DAY, "16:00-17:30", "小学")
        assert [(t.id, s.id, tag) for t, s, tag in rows] == [
            (tutor["tutor_id"], tutor["shifts"]["16:00-17:30"], "小学算数")
        ]


def test_subject_must_be_in_tutor_list(app, tutor):
    with app.app_context():
        assert find_available_tutors("英語", LESSON_DAY, "16:00-17:30", "中学") == []
        # 高校数学 is not 中学数学
        assert find_available_tutors("数学", LESSON_DAY, "16:00-17:30", "高校") == []


def test_unavailable_and_other_days_are_excluded(app, tutor):
    with app.app_context():
        db.session.get(TutorShift, tutor["shifts"]["18:00-19:30"]).is_available = False
        db.session.commit()

        assert find_available_tutors("小学算数", LESSON_DAY, "18:00-19:30") == []
        assert find_available_tutors("小学算数", parse_date("2025-05-02"), "16:00-17:30") == []


def test_inactive_tutor_is_excluded(app, tutor):
    with app.app_context():
        db.session.get(Tutor, tutor["tutor_id"]).is_active = False
        db.session.commit()
        assert find_available_tutors("小学算数", LESSON_DAY, "16:00-17:30") == []


def test_shift_subject_limits_match(app, tutor):
    with app.app_context():
        db.session.get(TutorShift, tutor["shifts"]["20:00-21:30"]).subject = "中学数学"
        db.session.commit()

        assert find_available_tutors("算数", LESSON_DAY, "20:00-21:30", "小学") == []
        rows = find_available_tutors("数学", LESSON_DAY, "20:00-21:30", "中学")
        assert len(rows) == 1


def test_available_endpoint(app, parent_client, tutor):
    resp = parent_client.get(
        "/api/tutors/available",
        query_string={"subject": "算数", "school_level": "小学", "date": "2025-05-01", "time_slot": "16:00-17:30"},
    )
    assert resp.status_code == 200
    assert resp.get_json() == [{
        "tutor_id": tutor["tutor_id"],
        "shift_id": tutor["shifts"]["16:00-17:30"],
        "name": "講師 太郎",
        "university": "東京大学",
        "subject": "小学算数",
        "date": "2025-05-01",
        "time_slot": "16:00-17:30",
    }]


def test_available_endpoint_validation(parent_client):
    assert parent_client.get("/api/tutors/available", query_string={"subject": "算数"}).status_code == 400
    bad_date = {"subject": "算数", "date": "05/01/2025", "time_slot": "16:00-17:30"}
    assert parent_client.get("/api/tutors/available", query_string=bad_date).status_code == 400
    bad_slot = {"subject": "算数", "date": "2025-05-01", "time_slot": "10:00-11:30"}
    assert parent_client.get("/api/tutors/available", query_string=bad_slot).status_code == 400


def test_booked_shift_disappears(parent_client, family, tutor):
    query = {"subject": "小学算数", "date": "2025-05-01", "time_slot": "16:00-17:30"}
    assert len(parent_client.get("/api/tutors/available", query_string=query).get_json()) == 1

    booking = parent_client.post("/api/bookings", json=booking_payload(family, tutor)).get_json()
    assert parent_client.get("/api/tutors/available", query_string=query).get_json() == []

    parent_client.delete(f"/api/bookings/{booking['id']}")
    assert len(parent_client.get("/api/tutors/available", query_string=query).get_json()) == 1


def test_available_endpoint_accepts_camel_case_params(parent_client, tutor):
    resp = parent_client.get(
        "/api/tutors/available",
        query_string={"subject": "数学", "schoolLevel": "中学", "date": "2025-05-01", "timeSlot": "18:00-19:30"},
    )
    assert resp.status_code == 200
    assert [(r["shift_id"], r["subject"]) for r in resp.get_json()] == [(tutor["shifts"]["18:00-19:30"], "中学数学")]

    missing = parent_client.get("/api/tutors/available", query_string={"subject": "数学"})
    assert missing.get_json()["message"] == "subject, date, time_slot are required"
