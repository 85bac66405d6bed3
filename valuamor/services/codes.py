import secrets
import string
from datetime import datetime


BASE36 = string.digits + string.ascii_uppercase

REDEEM_CODE_PREFIX = "Valuamor"


def _random_base36(length: int) -> str:
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(BASE36) for _ in range(length))


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36[remainder])
    return "".join(reversed(digits))


def generate_redeem_code() -> str:
    """Redeem code in the ``Valuamor-XXX-YYY`` format."""
    return f"{REDEEM_CODE_PREFIX}-{_random_base36(3)}-{_random_base36(3)}"


def generate_user_key_token() -> str:
    return f"KEY-{_random_base36(13)}"


def generate_dev_key_token(now: datetime) -> str:
    timestamp = to_base36(int(now.timestamp() * 1000))
    return f"DEV-{timestamp}-{_random_base36(6)}"
