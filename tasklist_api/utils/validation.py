import re
from typing import List

from email_validator import EmailNotValidError, validate_email

NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72  # bcrypt input limit

_PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter."),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter."),
    (re.compile(r"\d"), "Password must contain at least one digit."),
    (re.compile(r"[\W_]"), "Password must contain at least one special character."),
)


def name_errors(name: str) -> List[str]:
    if not name or not name.strip():
        return ["Name is required."]
    if len(name.strip()) > NAME_MAX_LENGTH:
        return [f"Name must not exceed {NAME_MAX_LENGTH} characters."]
    return []


def normalize_email(email: str) -> str:
    """Emails are compared case-insensitively, so they are stored lower-cased."""
    return (email or "").strip().lower()


def email_errors(email: str) -> List[str]:
    if not email or not email.strip():
        return ["Email is required."]
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return ["Invalid email format."]
    return []


def password_errors(password: str) -> List[str]:
    if not password:
        return ["Password is required."]
    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.")
    if len(password.encode()) > PASSWORD_MAX_BYTES:
        errors.append(f"Password must not exceed {PASSWORD_MAX_BYTES} bytes.")
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(password):
            errors.append(message)
    return errors


def format_errors(errors: dict) -> str:
    return " | ".join(f"{field}: {message}" for field, messages in errors.items() for message in messages)
