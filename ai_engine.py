import os
import re
import json
import base64
import logging
import binascii
import typing_extensions as typing # For TypedDict compatibility
from io import BytesIO
from dotenv import load_dotenv
from google import genai
from google.genai import types
from PIL import Image, UnidentifiedImageError

from services.recipe_service import clean_amount, DEFAULT_SERVINGS
from utils.prompt_manager import load_prompt

# Load Environment
load_dotenv()
api_key = os.getenv("GOOGLE_API_KEY")

logger = logging.getLogger(__name__)

# Initialize Client (None until GOOGLE_API_KEY is configured)
client = None
if api_key:
    client = genai.Client(api_key=api_key)

MAX_TEXT_CHARS = 10000


class RecipeExtractionError(ValueError):
    """The model answered, but no usable recipe could be read from the answer."""


# --- TypedDict Schema Definitions ---
# Using TypedDict for Gemini response_schema

class IngredientSchema(typing.TypedDict):
    name: str
    amount: typing.Optional[str]  # "200", "1/2", "1 1/2" or null for "nach Geschmack"
    unit: typing.Optional[str]

class RecipeSchema(typing.TypedDict):
    title: str
    servings: int
    ingredients: list[IngredientSchema]
    instructions: str  # Markdown


def _require_client():
    if client is None:
        raise ValueError("GOOGLE_API_KEY environment variable is missing. Please check Secrets/Env Vars.")
    return client


def _json_config():
    return types.GenerateContentConfig(
        response_mime_type="application/json",
        response_schema=RecipeSchema
    )


def parse_recipe_response(payload) -> dict:
    """
    Turns a model answer into a clean recipe draft.

    Accepts the SDK's parsed dict or the raw text (the outermost {...} block is
    used, so chatter around the JSON is tolerated).
    Raises RecipeExtractionError when title, instructions or ingredients are missing.
    """
    if isinstance(payload, dict):
        parsed = payload
    elif isinstance(payload, (str, list)):
        text = payload if isinstance(payload, str) else ''.join(str(p) for p in payload)
        match = re.search(r'\{[\s\S]*\}', text)
        if not match:
            raise RecipeExtractionError("No JSON found in response")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise RecipeExtractionError(f"Failed to parse JSON from response: {e}")
    else:
        raise RecipeExtractionError("Unexpected output format from model")

    if not isinstance(parsed, dict):
        raise RecipeExtractionError("Unexpected output format from model")

    title = parsed.get('title')
    if not isinstance(title, str) or not title.strip():
        raise RecipeExtractionError("Missing or invalid title")

    instructions = parsed.get('instructions')
    if not isinstance(instructions, str) or not instructions.strip():
        raise RecipeExtractionError("Missing or invalid instructions")

    raw_ingredients = parsed.get('ingredients')
    if not isinstance(raw_ingredients, list) or not raw_ingredients:
        raise RecipeExtractionError("Missing or invalid ingredients")

    ingredients = []
    for ing in raw_ingredients:
        if not isinstance(ing, dict):
            continue
        name = ing.get('name')
        if not isinstance(name, str) or not name.strip():
            continue
        unit = ing.get('unit')
        if not isinstance(unit, str) or not unit.strip():
            unit = None
        ingredients.append({
            'name': name.strip(),
            'amount': clean_amount(ing.get('amount')),
            'unit': unit.strip() if unit else None,
        })

    servings = parsed.get('servings')
    if isinstance(servings, bool) or not isinstance(servings, (int, float)) or servings < 1:
        servings = DEFAULT_SERVINGS

    return {
        'title': title.strip(),
        'servings': int(servings),
        'ingredients': ingredients,
        'instructions': instructions.strip(),
    }


def _read_response(response) -> dict:
    if response.parsed:
        return parse_recipe_response(response.parsed)
    return parse_recipe_response(response.text or '')


def decode_image_data(image_data: str) -> Image.Image:
    """Accepts a data URL or a bare base64 string and returns a PIL image."""
    encoded = image_data.split(',', 1)[1] if image_data.startswith('data:') else image_data
    try:
        raw = base64.b64decode(encoded, validate=False)
        image = Image.open(BytesIO(raw))
        image.load()
    except (binascii.Error, UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Invalid image data: {e}")
    return image


def extract_recipe_from_image(image_data: str, model: str, strict: bool = False) -> dict:
    """Reads a recipe (photo of a cookbook page, handwritten card, screenshot)."""
    ai = _require_client()
    image = decode_image_data(image_data)
    prompt = load_prompt('recipe_text/extraction.jinja2', source='image', strict=strict)

    logger.info(f"Extracting recipe from image via '{model}' (strict={strict})")
    response = ai.models.generate_content(
        model=model,
        contents=[prompt, image],
        config=_json_config()
    )
    return _read_response(response)


def extract_recipe_from_text(content: str, model: str, strict: bool = False, source: str = 'text') -> dict:
    """Reads a recipe from pasted text or scraped page content."""
    ai = _require_client()
    truncated = content[:MAX_TEXT_CHARS]
    prompt = load_prompt('recipe_text/extraction.jinja2',
        source=source,
        strict=strict,
        content=truncated
    )

    logger.info(f"Extracting recipe from {source} ({len(truncated)} chars) via '{model}'")
    response = ai.models.generate_content(
        model=model,
        contents=prompt,
        config=_json_config()
    )
    return _read_response(response)


def refine_recipe(draft: dict, instruction: str, model: str) -> dict:
    """
    Asks the model to improve an in-progress draft following a free-text
    instruction ("Mengen für 2 Personen", "Tippfehler korrigieren").
    """
    ai = _require_client()
    current = {
        'title': draft.get('title', ''),
        'servings': draft.get('servings', DEFAULT_SERVINGS),
        'ingredients': [
            {'name': i.get('name', ''), 'amount': i.get('amount'), 'unit': i.get('unit')}
            for i in draft.get('ingredients') or []
        ],
        'instructions': draft.get('instructions', ''),
    }
    prompt = load_prompt('recipe_text/refinement.jinja2',
        recipe_json=json.dumps(current, ensure_ascii=False, indent=2),
        instruction=instruction
    )

    logger.info(f"Refining draft '{current['title']}' via '{model}'")
    response = ai.models.generate_content(
        model=model,
        contents=prompt,
        config=_json_config()
    )
    return _read_response(response)
