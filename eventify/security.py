import hmac
import os
import re

from dotenv import load_dotenv
from passlib.context import CryptContext

load_dotenv()

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

# name.123456@dept.ritchennai.edu.in
DEFAULT_COLLEGE_EMAIL_PATTERN = r"^[a-zA-Z]+\.[0-9]{6}@[a-zA-Z]+\.ritchennai\.edu\.in$"


def hash_password(password: str) -> str:
    """Hash a plaintext password using the shared CryptContext."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify that ``plain_password`` matches ``hashed_password``."""
    return pwd_context.verify(plain_password, hashed_password)


def college_email_pattern() -> re.Pattern:
    return re.compile(os.getenv("COLLEGE_EMAIL_PATTERN", DEFAULT_COLLEGE_EMAIL_PATTERN))


def is_college_email(email: str) -> bool:
    return bool(college_email_pattern().match(email or ""))


def admin_code_matches(provided: str | None) -> bool:
    expected = os.getenv("ADMIN_CODE", "ADMIN123")
    return bool(provided) and hmac.compare_digest(provided, expected)
