"""
Participant code generation and validation.
"""
import random
import re

from confpulse.config import CONFIG

_CODE_RE = re.compile(rf"{re.escape(CONFIG.code_prefix)}-[0-9]{{4}}")


def generate_code() -> str:
    """Generate a participant code such as ``AF-4821``."""
    number = random.randint(1000, 9999)
    return f"{CONFIG.code_prefix}-{number}"


def is_valid_code(code) -> bool:
    return isinstance(code, str) and _CODE_RE.fullmatch(code) is not None


def is_valid_email(email) -> bool:
    return isinstance(email, str) and "@" in email
