"""
Auth Service — single household PIN.

There are no user accounts: whoever knows the PIN is logged in as the one
HouseholdUser. The PIN hash lives in app_setting under 'pin_hash'.
"""
import logging

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from services.settings_service import get_setting, set_setting, PIN_HASH_KEY

logger = logging.getLogger(__name__)

MIN_PIN_LENGTH = 4
HOUSEHOLD_USER_ID = 'household'


class HouseholdUser(UserMixin):
    id = HOUSEHOLD_USER_ID


def load_household_user(user_id: str):
    if user_id == HOUSEHOLD_USER_ID and is_pin_configured():
        return HouseholdUser()
    return None


def is_pin_configured() -> bool:
    return bool(get_setting(PIN_HASH_KEY))


def validate_new_pin(pin) -> str | None:
    """Returns an error message or None."""
    if not isinstance(pin, str) or len(pin.strip()) < MIN_PIN_LENGTH:
        return f'PIN muss mindestens {MIN_PIN_LENGTH} Zeichen haben'
    return None


def set_pin(pin: str) -> None:
    set_setting(PIN_HASH_KEY, generate_password_hash(pin.strip()))
    logger.info("Household PIN updated")


def verify_pin(pin) -> bool:
    pin_hash = get_setting(PIN_HASH_KEY)
    if not pin_hash or not isinstance(pin, str):
        return False
    return check_password_hash(pin_hash, pin.strip())
