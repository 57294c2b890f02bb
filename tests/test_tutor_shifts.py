from conftest import booking_payload, create_user, login
from utils.roles import TUTOR


def test_profile_create_and_update(app):
    with app.app_context():
        create_user("newtutor@example.com", TUTOR)
    client = app.test_client()
    login(client, "newtutor@example.com")

    assert client.get("/api/tutor/profile").status_code == 404
    assert client.post("/api/tutor/profile", json={"last_name": "鈴木"}).status_code == 400

    resp = client.post("/api/tutor/profile", json={
        "last_name": "鈴木", "first_name": "一郎", "university": "京都大学",
        "subjects": ["中学英語", " 高校英語 ", ""],
    })
    assert resp.status_code == 201
    assert resp.get_json()["subjects"] == ["中学英語", "高校英語"]

    resp = client.post("/api/tutor/profile", json={"bio": "英語が得意です"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["bio"] == "英語が得意です"
    assert body["last_name"] == "鈴木"
    assert body["subjects"] == ["中学英語", "高校英語"]


def test_shift_upsert_and_listing(app, tutor_client, tutor):
    resp = tutor_client.post("/api/tutor/shifts", json={"date": "2025-05-02", "time_slot": "18:00-19:30"})
    assert resp.status_code == 201
    created = resp.get_json()
    assert created["is_available"] is True
    assert created["subject"] is None

    resp = tutor_client.post("/api/tutor/shifts", json={
        "date": "2025-05-02", "time_slot": "18:00-19:30", "is_available": False, "subject": "中学数学",
    })
    assert resp.status_code == 200
    assert resp.get_json()["id"] == created["id"]
    assert resp.get_json()["is_available"] is False

    day = tutor_client.get("/api/tutor/shifts/2025-05-02").get_json()
    assert [(s["time_slot"], s["subject"]) for s in day] == [("18:00-19:30", "中学数学")]

    everything = tutor_client.get("/api/tutor/shifts").get_json()
    assert len(everything) == 4
    later = tutor_client.get("/api/tutor/shifts", query_string={"from": "2025-05-02"}).get_json()
    assert [s["id"] for s in later] == [created["id"]]


def test_shift_validation(tutor_client):
    assert tutor_client.post("/api/tutor/shifts", json={"date": "2025-05-02"}).status_code == 400
    assert tutor_client.post("/api/tutor/shifts", json={
        "date": "2025-05-02", "time_slot": "07:00-08:30"}).status_code == 400
    assert tutor_client.post("/api/tutor/shifts", json={
        "date": "2025-05-02", "time_slot": "16:00-17:30", "is_available": "yes"}).status_code == 400
    assert tutor_client.post("/api/tutor/shifts", json={
        "date": "2025-05-02", "time_slot": "16:00-17:30", "subject": "高校物理"}).status_code == 400
    assert tutor_client.get("/api/tutor/shifts/not-a-date").status_code == 400


def test_booked_shift_is_locked(parent_client, tutor_client, family, tutor):
    booking = parent_client.post("/api/bookings", json=booking_payload(family, tutor)).get_json()

    resp = tutor_client.post("/api/tutor/shifts", json={
        "date": "2025-05-01", "time_slot": "16:00-17:30", "is_available": True,
    })
    assert resp.status_code == 409

    parent_client.delete(f"/api/bookings/{booking['id']}")
    resp = tutor_client.post("/api/tutor/shifts", json={
        "date": "2025-05-01", "time_slot": "16:00-17:30", "is_available": False,
    })
    assert resp.status_code == 200


def test_parent_cannot_manage_shifts(parent_client):
    assert parent_client.get("/api/tutor/shifts").status_code == 403
    assert parent_client.post("/api/tutor/shifts", json={
        "date": "2025-05-02", "time_slot": "16:00-17:30"}).status_code == 403


def test_shifts_need_profile(app):
    with app.app_context():
        create_user("bare@example.com", TUTOR)
    client = app.test_client()
    login(client, "bare@example.com")
    assert client.get("/api/tutor/shifts").status_code == 404
    assert client.get("/api/tutor/bookings").status_code == 404


def test_non_string_fields_are_rejected(tutor_client):
    assert tutor_client.post("/api/tutor/profile", json={"last_name": 1, "first_name": "太郎"}).status_code == 400
    assert tutor_client.post("/api/tutor/profile", json={"bio": ["長文"]}).status_code == 400
    assert tutor_client.post("/api/tutor/shifts", json={
        "date": "2025-05-02", "time_slot": "16:00-17:30", "subject": 5}).status_code == 400
