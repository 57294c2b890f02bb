from models.tutor import Tutor
from models.tutor_shift import TutorShift
from utils.slots import build_subject_tag


def find_available_tutors(subject: str, date, time_slot: str, school_level: str | None = None):
    """Every open (tutor, shift) pair that can teach the subject at date/time_slot.

    The subject is combined with the school level into a tag (小学 + 算数 -> 小学算数)
    that must appear in the tutor's subject list. A shift with its own subject only
    matches that tag. Results are in shift id order; there is no ranking.
    """
    tag = build_subject_tag(subject, school_level)
    if not tag:
        return []

    rows = (
        TutorShift.query
        .join(Tutor, Tutor.id == TutorShift.tutor_id)
        .filter(
            TutorShift.date == date,
            TutorShift.time_slot == time_slot,
            TutorShift.is_available.is_(True),
            Tutor.is_active.is_(True),
        )
        .add_entity(Tutor)
        .order_by(TutorShift.id.asc())
        .all()
    )

    matches = []
    for shift, tutor in rows:
        if tag not in tutor.subject_list():
            continue
        if shift.subject and shift.subject != tag:
            continue
        matches.append((tutor, shift, tag))
    return matches
