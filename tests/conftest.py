"""
Pytest configuration and shared fixtures for the tutoring booking tests.
"""

from datetime import date

import pytest

from app import create_app
from config import Config
from models import db
from models.student import Student
from models.tutor import Tutor
from models.tutor_shift import TutorShift
from models.user import User, Role
from security.password import hash_password
from services import tickets
from utils.roles import PARENT, TUTOR, ADMIN
from utils.slots import TIME_SLOTS

LESSON_DAY = date(2025, 5, 1)
PASSWORD = "password123"


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    CREATE_TABLES_ON_START = True
    SECRET_KEY = "test-secret-key-for-testing-only"
    CSRF_ENABLED = False
    BCRYPT_ROUNDS = 4
    ENABLE_DEV_TICKET_ENDPOINTS = True
    SMTP_HOST = None
    STRIPE_SECRET_KEY = None
    STRIPE_WEBHOOK_SECRET = None


@pytest.fixture()
def app():
    """Fresh app with an in-memory database per test."""
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Record outgoing booking mail instead of talking to SMTP."""
    sent = []

    def fake_send(to_email, subject, body):
        sent.append({"to": to_email, "subject": subject, "body": body})
        return True, None

    monkeypatch.setattr("services.notifications.send_email", fake_send)
    return sent


def create_user(email, role_name, password=PASSWORD, **fields):
    user = User(email=email, password_hash=hash_password(password), **fields)
    user.roles.append(Role.query.filter_by(name=role_name).first())
    db.session.add(user)
    db.session.commit()
    return user


def login(client, email, password=PASSWORD):
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp


@pytest.fixture()
def family(app):
    """A parent with one elementary school student holding 2 tickets."""
    with app.app_context():
        parent = create_user("parent@example.com", PARENT, display_name="保護者")
        student = Student(user_id=parent.id, last_name="山田", first_name="花子",
                          school="テスト小学校", grade="3年生", school_level="小学")
        db.session.add(student)
        db.session.flush()
        tickets.credit(student.id, 2, "Initial tickets")
        db.session.commit()
        return {"user_id": parent.id, "email": parent.email, "student_id": student.id}


@pytest.fixture()
def tutor(app):
    """A tutor teaching 小学算数 and 中学数学 with all three slots open on LESSON_DAY."""
    with app.app_context():
        user = create_user("tutor@example.com", TUTOR)
        t = Tutor(user_id=user.id, last_name="講師", first_name="太郎",
                  university="東京大学", subjects="小学算数,中学数学")
        db.session.add(t)
        db.session.flush()
        shifts = {}
        for slot in TIME_SLOTS:
            shift = TutorShift(tutor_id=t.id, date=LESSON_DAY, time_slot=slot, is_available=True)
            db.session.add(shift)
            db.session.flush()
            shifts[slot] = shift.id
        db.session.commit()
        return {"user_id": user.id, "email": user.email, "tutor_id": t.id, "shifts": shifts}


@pytest.fixture()
def admin(app):
    with app.app_context():
        user = create_user("admin@example.com", ADMIN)
        return {"user_id": user.id, "email": user.email}


@pytest.fixture()
def parent_client(app, family):
    client = app.test_client()
    login(client, family["email"])
    return client


@pytest.fixture()
def tutor_client(app, tutor):
    client = app.test_client()
    login(client, tutor["email"])
    return client


def booking_payload(family, tutor, slot="16:00-17:30", **overrides):
    payload = {
        "student_id": family["student_id"],
        "tutor_id": tutor["tutor_id"],
        "shift_id": tutor["shifts"][slot],
        "date": LESSON_DAY.isoformat(),
        "time_slot": slot,
        "subject": "小学算数",
    }
    payload.update(overrides)
    return payload
