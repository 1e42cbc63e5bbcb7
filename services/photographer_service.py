import os
import base64
import logging
from google import genai
from google.genai import types
from PIL import Image
from io import BytesIO

from utils.prompt_manager import load_prompt

logger = logging.getLogger(__name__)

# Initialize Client
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
client = None
if GOOGLE_API_KEY:
    client = genai.Client(api_key=GOOGLE_API_KEY)

MAX_PROMPT_INGREDIENTS = 12
JPEG_QUALITY = 85


def build_dish_prompt(title: str, ingredient_names: list[str] | None = None) -> str:
    names = [n.strip() for n in (ingredient_names or []) if isinstance(n, str) and n.strip()]
    return load_prompt('recipe_image/dish_photo.jinja2',
        title=title.strip(),
        ingredients=names[:MAX_PROMPT_INGREDIENTS]
    ).strip()


def image_to_data_url(image: Image.Image) -> str:
    """Re-encodes a PIL image as a JPEG data URL (the format stored on Recipe.image_data)."""
    if image.mode != 'RGB':
        image = image.convert('RGB')
    buffer = BytesIO()
    image.save(buffer, format='JPEG', quality=JPEG_QUALITY)
    encoded = base64.b64encode(buffer.getvalue()).decode('ascii')
    return f"data:image/jpeg;base64,{encoded}"


def generate_recipe_image(title: str, ingredient_names: list[str], model: str) -> str:
    """
    Generates a dish photo for a recipe.
    Returns: data URL (data:image/jpeg;base64,...)
    """
    if not client:
        raise ValueError("GOOGLE_API_KEY environment variable is missing. Please check Secrets/Env Vars.")

    prompt = build_dish_prompt(title, ingredient_names)
    logger.info(f"Generating dish image for '{title}' via '{model}'")

    response = client.models.generate_images(
        model=model,
        prompt=prompt,
        config=types.GenerateImagesConfig(
            number_of_images=1,
            aspect_ratio='16:9'
        )
    )

    if not response.generated_images:
        raise ValueError("No images returned from API")

    image_bytes = response.generated_images[0].image.image_bytes
    return image_to_data_url(Image.open(BytesIO(image_bytes)))
