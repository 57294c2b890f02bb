from conftest import PASSWORD, TestingConfig, booking_payload, create_user, login
from app import create_app
from models import db
from models.audit_log import AuditLog
from models.user import User
from security.password import needs_rehash


def test_register_login_me_logout(app):
    client = app.test_client()
    resp = client.post("/auth/register", json={
        "email": "New@Example.com", "password": PASSWORD, "display_name": "新規",
    })
    assert resp.status_code == 201

    login(client, "new@example.com")
    me = client.get("/auth/me").get_json()
    assert me["email"] == "new@example.com"
    assert me["roles"] == ["PARENT"]
    assert me["email_notifications"] is True

    assert client.post("/auth/logout").status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_register_validation(app):
    client = app.test_client()
    assert client.post("/auth/register", json={"email": "bad", "password": PASSWORD}).status_code == 400
    assert client.post("/auth/register", json={"email": "a@b.jp", "password": "short"}).status_code == 400
    assert client.post("/auth/register", json={
        "email": "a@b.jp", "password": PASSWORD, "role": "ADMIN"}).status_code == 400

    assert client.post("/auth/register", json={"email": "a@b.jp", "password": PASSWORD, "role": "tutor"}).status_code == 201
    assert client.post("/auth/register", json={"email": "a@b.jp", "password": PASSWORD}).status_code == 409


def test_bad_login_is_audited(app, family):
    client = app.test_client()
    resp = client.post("/auth/login", json={"email": family["email"], "password": "wrong-password"})
    assert resp.status_code == 401
    with app.app_context():
        assert AuditLog.query.filter_by(action="LOGIN_FAIL").count() == 1


def test_update_profile(parent_client):
    resp = parent_client.patch("/auth/me", json={"phone": "090-0000-0000", "email_notifications": False})
    assert resp.status_code == 200
    me = parent_client.get("/auth/me").get_json()
    assert me["phone"] == "090-0000-0000"
    assert me["email_notifications"] is False

    assert parent_client.patch("/auth/me", json={"email_notifications": "no"}).status_code == 400


def test_notifications_off_skips_parent_mail(parent_client, family, tutor, sent_emails):
    parent_client.patch("/auth/me", json={"email_notifications": False})
    parent_client.post("/api/bookings", json=booking_payload(family, tutor))
    assert [m["to"] for m in sent_emails] == [tutor["email"]]


def test_student_account_login(app, parent_client, family):
    resp = parent_client.post("/auth/student-account", json={
        "email": "hanako@example.com", "password": PASSWORD, "student_id": family["student_id"],
    })
    assert resp.status_code == 201
    again = parent_client.post("/auth/student-account", json={
        "email": "hanako2@example.com", "password": PASSWORD, "student_id": family["student_id"],
    })
    assert again.status_code == 409

    student_client = app.test_client()
    login(student_client, "hanako@example.com")
    me = student_client.get("/auth/me").get_json()
    assert me["roles"] == ["STUDENT"]
    assert me["student_id"] == family["student_id"]

    balances = student_client.get("/api/tickets").get_json()
    assert balances == {
        "students": [{"student_id": family["student_id"], "name": "山田 花子", "balance": 2}],
        "total": 2,
    }


def test_csrf_enforced_for_logged_in_writes():
    class CsrfConfig(TestingConfig):
        CSRF_ENABLED = True

    app = create_app(CsrfConfig)
    try:
        with app.app_context():
            create_user("csrf@example.com", "PARENT")

        client = app.test_client()
        login(client, "csrf@example.com")

        assert client.patch("/auth/me", json={"phone": "1"}).status_code == 403
        token = client.get_cookie("csrf_token").value
        resp = client.patch("/auth/me", json={"phone": "1"}, headers={"X-CSRF-Token": token})
        assert resp.status_code == 200
    finally:
        with app.app_context():
            db.session.remove()
            db.drop_all()


def test_health(app):
    resp = app.test_client().get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_passwords_are_hashed(app, family):
    with app.app_context():
        user = User.query.filter_by(email=family["email"]).first()
        assert user.password_hash != PASSWORD
        assert user.password_hash.startswith("$2")


def test_change_password(app, family):
    client = app.test_client()
    login(client, family["email"])

    assert client.post("/auth/change-password", json={
        "current_password": "nope-nope", "new_password": "brand-new-pass"}).status_code == 401
    assert client.post("/auth/change-password", json={
        "current_password": PASSWORD, "new_password": "short"}).status_code == 400

    resp = client.post("/auth/change-password", json={
        "current_password": PASSWORD, "new_password": "brand-new-pass"})
    assert resp.status_code == 200
    assert client.get("/auth/me").status_code == 200

    assert app.test_client().post("/auth/login", json={
        "email": family["email"], "password": PASSWORD}).status_code == 401
    login(app.test_client(), family["email"], "brand-new-pass")


def test_new_login_replaces_old_session(app, family):
    first = app.test_client()
    second = app.test_client()
    login(first, family["email"])
    login(second, family["email"])

    assert first.get("/auth/me").status_code == 401
    assert second.get("/auth/me").status_code == 200


def test_weak_hash_is_upgraded_on_login(app, family):
    with app.app_context():
        user = db.session.get(User, family["user_id"])
        app.config["BCRYPT_ROUNDS"] = 5
        assert needs_rehash(user.password_hash)

    login(app.test_client(), family["email"])
    with app.app_context():
        user = db.session.get(User, family["user_id"])
        assert user.password_hash.split("$")[2] == "05"
        assert not needs_rehash(user.password_hash)


def test_non_string_credentials_are_rejected(app, family):
    client = app.test_client()
    assert client.post("/auth/register", json={"email": 5, "password": PASSWORD}).status_code == 400
    assert client.post("/auth/register", json={
        "email": "x@example.com", "password": PASSWORD, "role": 1}).status_code == 400
    assert client.post("/auth/login", json={"email": ["a"], "password": PASSWORD}).status_code == 400
    assert client.post("/auth/login", json={"email": family["email"], "password": 12345678}).status_code == 401
