from datetime import date, datetime

# Fixed lesson slots offered every day
TIME_SLOTS = ("16:00-17:30", "18:00-19:30", "20:00-21:30")

SCHOOL_LEVELS = ("小学", "中学", "高校")


def is_valid_time_slot(value) -> bool:
    return value in TIME_SLOTS


def parse_date(value) -> date:
    """Parse YYYY-MM-DD. Raises ValueError on anything else."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError("date must be a string")
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def build_subject_tag(subject: str, school_level: str | None = None) -> str:
    """Combine school level and subject into the tag tutors list, e.g. 小学 + 算数 -> 小学算数.

    A subject that already starts with a level prefix is returned unchanged.
    """
    subject = (subject or "").strip()
    level = (school_level or "").strip()
    if not level or subject.startswith(SCHOOL_LEVELS):
        return subject
    return level + subject
