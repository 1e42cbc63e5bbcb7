"""Settings Service — key/value application settings stored in app_setting."""
import logging

from database.models import db, AppSetting

logger = logging.getLogger(__name__)

RECIPE_MODEL_KEY = 'recipe_model'
IMAGE_MODEL_KEY = 'image_model'
PIN_HASH_KEY = 'pin_hash'

# Models offered for extraction / refinement
RECIPE_MODELS = [
    'gemini-flash-latest',
    'gemini-2.5-flash',
    'gemini-2.5-pro',
]
DEFAULT_RECIPE_MODEL = 'gemini-flash-latest'

# Models offered for dish photos
IMAGE_MODELS = [
    'imagen-4.0-generate-001',
    'imagen-4.0-fast-generate-001',
]
DEFAULT_IMAGE_MODEL = 'imagen-4.0-generate-001'


def get_setting(key: str, default: str | None = None) -> str | None:
    setting = db.session.get(AppSetting, key)
    if setting is None or setting.value is None:
        return default
    return setting.value


def set_setting(key: str, value: str) -> None:
    setting = db.session.get(AppSetting, key)
    if setting is None:
        setting = AppSetting(key=key, value=value)
        db.session.add(setting)
    else:
        setting.value = value
    db.session.commit()
    if key != PIN_HASH_KEY:
        logger.info(f"Setting '{key}' updated to '{value}'")


def get_recipe_model() -> str:
    return get_setting(RECIPE_MODEL_KEY, DEFAULT_RECIPE_MODEL)


def get_image_model() -> str:
    return get_setting(IMAGE_MODEL_KEY, DEFAULT_IMAGE_MODEL)
