import bcrypt
from flask import current_app, has_app_context

MIN_PASSWORD_LENGTH = 8


def _rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", 12))
    return 12


def password_problem(password) -> str | None:
    """Error message for an unacceptable password, None when it is fine."""
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    # bcrypt ignores everything past 72 bytes
    if len(password.encode("utf-8")) > 72:
        return "Password is too long"
    return None


def hash_password(plain_password: str) -> str:
    if not isinstance(plain_password, str) or not plain_password:
        raise ValueError("Password must be a non-empty string")
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt(rounds=_rounds()))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not isinstance(plain_password, str) or not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed hash stored for this user
        return False


def needs_rehash(password_hash: str) -> bool:
    """True when the stored hash was made with a different cost than BCRYPT_ROUNDS."""
    # $2b$12$... -> cost is the third field
    try:
        return int(password_hash.split("$")[2]) != _rounds()
    except (AttributeError, IndexError, ValueError):
        return True
