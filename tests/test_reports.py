from conftest import booking_payload, create_user, login
from models import db
from models.booking import Booking
from models.lesson_report import LessonReport
from services.reconciler import format_report
from utils.roles import TUTOR

REPORT = {"unit": "分数のたし算", "message": "よく集中できました", "goal": "ドリル p.12-13"}


def _book(parent_client, family, tutor):
    resp = parent_client.post("/api/bookings", json=booking_payload(family, tutor))
    assert resp.status_code == 201
    return resp.get_json()["id"]


def test_format_report():
    text = format_report("単元A", "伝言B", "目標C")
    assert text == "【単元】\n単元A\n\n【伝言事項】\n伝言B\n\n【来週までの目標(課題)】\n目標C"


def test_tutor_writes_report(app, parent_client, tutor_client, family, tutor):
    booking_id = _book(parent_client, family, tutor)

    resp = tutor_client.post(f"/api/bookings/{booking_id}/report", json=REPORT)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["report_status"] == "completed"
    assert body["report"]["unit"] == "分数のたし算"
    assert "【伝言事項】\nよく集中できました" in body["report_content"]

    # second save updates the same report
    updated = dict(REPORT, goal="ドリル p.14")
    assert tutor_client.post(f"/api/bookings/{booking_id}/report", json=updated).status_code == 200
    with app.app_context():
        assert LessonReport.query.filter_by(booking_id=booking_id).count() == 1
        assert LessonReport.query.filter_by(booking_id=booking_id).first().goal_content == "ドリル p.14"

    seen = parent_client.get(f"/api/bookings/{booking_id}").get_json()
    assert seen["report"]["goal"] == "ドリル p.14"

    tutor_view = tutor_client.get("/api/tutor/bookings").get_json()
    assert [b["id"] for b in tutor_view] == [booking_id]


def test_other_tutor_cannot_report(app, parent_client, family, tutor):
    booking_id = _book(parent_client, family, tutor)
    with app.app_context():
        create_user("tutor2@example.com", TUTOR)
    other = app.test_client()
    login(other, "tutor2@example.com")

    assert other.post(f"/api/bookings/{booking_id}/report", json=REPORT).status_code == 403
    assert parent_client.post(f"/api/bookings/{booking_id}/report", json=REPORT).status_code == 403
    # unrelated tutors cannot read the booking either
    assert other.get(f"/api/bookings/{booking_id}").status_code == 404


def test_cancelled_booking_cannot_be_reported(app, parent_client, tutor_client, family, tutor):
    booking_id = _book(parent_client, family, tutor)
    parent_client.delete(f"/api/bookings/{booking_id}")

    resp = tutor_client.post(f"/api/bookings/{booking_id}/report", json=REPORT)
    assert resp.status_code == 400
    with app.app_context():
        booking = db.session.get(Booking, booking_id)
        assert booking.report_status == "pending"


def test_empty_report_rejected(parent_client, tutor_client, family, tutor):
    booking_id = _book(parent_client, family, tutor)
    resp = tutor_client.post(f"/api/bookings/{booking_id}/report", json={"unit": "  "})
    assert resp.status_code == 400


def test_report_for_missing_booking(tutor_client):
    assert tutor_client.post("/api/bookings/999/report", json=REPORT).status_code == 404


def test_report_fields_must_be_text(parent_client, tutor_client, family, tutor):
    booking_id = _book(parent_client, family, tutor)
    resp = tutor_client.post(f"/api/bookings/{booking_id}/report", json=dict(REPORT, unit=3))
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "unit must be a string"
