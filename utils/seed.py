from datetime import date, timedelta

from models import db
from models.user import User, Role
from models.student import Student
from models.tutor import Tutor
from models.tutor_shift import TutorShift
from security.password import hash_password
from services import tickets
from utils.roles import DEFAULT_ROLES, PARENT, TUTOR
from utils.slots import TIME_SLOTS

def seed_roles():
    existing = {r.name for r in Role.query.all()}
    for name in DEFAULT_ROLES:
        if name not in existing:
            db.session.add(Role(name=name))
    db.session.commit()


def _user_with_role(email, password, display_name, role_name):
    user = User.query.filter_by(email=email).first()
    if user:
        return user, False
    user = User(email=email, password_hash=hash_password(password), display_name=display_name)
    role = Role.query.filter_by(name=role_name).first()
    if role:
        user.roles.append(role)
    db.session.add(user)
    db.session.flush()
    return user, True


def seed_demo_data(days: int = 7, start: date | None = None):
    """Create a parent with two students and a tutor with a week of shifts.

    Idempotent on the demo accounts; returns a summary dict.
    """
    seed_roles()
    start = start or date.today() + timedelta(days=1)

    parent, created = _user_with_role("parent@example.com", "password123", "テストユーザー", PARENT)
    if created:
        high = Student(user_id=parent.id, last_name="テスト", first_name="太郎",
                       school="テスト高等学校", grade="高校2年生", school_level="高校")
        elem = Student(user_id=parent.id, last_name="テスト", first_name="花子",
                       school="テスト小学校", grade="3年生", school_level="小学")
        db.session.add_all([high, elem])
        db.session.flush()
        tickets.credit(high.id, 5, "Demo tickets")
        tickets.credit(elem.id, 5, "Demo tickets")

    tutor_user, created = _user_with_role("tutor@example.com", "tutor123", "テスト講師", TUTOR)
    tutor = Tutor.query.filter_by(user_id=tutor_user.id).first()
    if not tutor:
        tutor = Tutor(user_id=tutor_user.id, last_name="講師", first_name="太郎", university="東京大学",
                      subjects="小学国語,小学算数,中学数学,高校数学",
                      bio="数学が得意な講師です。")
        db.session.add(tutor)
        db.session.flush()

    shifts = 0
    for offset in range(days):
        day = start + timedelta(days=offset)
        for slot in TIME_SLOTS:
            exists = TutorShift.query.filter_by(tutor_id=tutor.id, date=day, time_slot=slot).first()
            if exists:
                continue
            db.session.add(TutorShift(tutor_id=tutor.id, date=day, time_slot=slot, is_available=True))
            shifts += 1

    db.session.commit()
    return {"parent": parent.email, "tutor": tutor_user.email, "shifts_created": shifts}
