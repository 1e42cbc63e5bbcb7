"""
Refinement Service — works out what an AI refinement actually changed.

When the AI returns a refined draft, the edit form replaces its state with it
and highlights only the fields that differ from what the user had. Ingredients
are paired in two passes because the model may reorder, add, drop or rephrase
them, and a positional diff would flag nearly everything:

  Pass 1: pair by normalized name.
  Pass 2: pair the leftovers by normalized amount AND unit (catches renames).

Unpaired refined ingredients count as new (all fields changed). Ties go to the
earliest remaining original ingredient; no global optimum is attempted.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from services.recipe_service import clean_amount
from utils.normalize import normalize_field

INGREDIENT_FIELDS = ('name', 'amount', 'unit')


@dataclass
class ChangeSet:
    """Which parts of a refined draft differ from the original.

    ingredient_changes is keyed by index into the REFINED ingredient list.
    """
    title_changed: bool = False
    servings_changed: bool = False
    instructions_changed: bool = False
    ingredient_changes: dict[int, set[str]] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return (
            self.title_changed
            or self.servings_changed
            or self.instructions_changed
            or bool(self.ingredient_changes)
        )

    def to_dict(self) -> dict:
        return {
            'title': self.title_changed,
            'servings': self.servings_changed,
            'instructions': self.instructions_changed,
            'ingredients': {
                str(index): sorted(fields)
                for index, fields in sorted(self.ingredient_changes.items())
            },
        }


def _get(item, key):
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def _stripped(value) -> str:
    return "" if value is None else str(value).strip()


def _find_unconsumed(originals: list, consumed: set[int], predicate) -> int | None:
    for index, candidate in enumerate(originals):
        if index not in consumed and predicate(candidate):
            return index
    return None


def match_ingredients(original_ingredients: list, refined_ingredients: list) -> dict[int, int]:
    """
    Pairs refined ingredients with original ones.
    Returns {refined_index: original_index}; each original index appears at most once.
    """
    consumed: set[int] = set()
    pairs: dict[int, int] = {}

    # Pass 1: name
    for new_idx, new_ing in enumerate(refined_ingredients):
        new_name = normalize_field(_get(new_ing, 'name'))
        old_idx = _find_unconsumed(
            original_ingredients, consumed,
            lambda old: normalize_field(_get(old, 'name')) == new_name,
        )
        if old_idx is not None:
            consumed.add(old_idx)
            pairs[new_idx] = old_idx

    # Pass 2: amount + unit
    for new_idx, new_ing in enumerate(refined_ingredients):
        if new_idx in pairs:
            continue
        new_amount = normalize_field(_get(new_ing, 'amount'))
        new_unit = normalize_field(_get(new_ing, 'unit'))
        old_idx = _find_unconsumed(
            original_ingredients, consumed,
            lambda old: (
                normalize_field(_get(old, 'amount')) == new_amount
                and normalize_field(_get(old, 'unit')) == new_unit
            ),
        )
        if old_idx is not None:
            consumed.add(old_idx)
            pairs[new_idx] = old_idx

    return pairs


def compute_change_set(original, refined) -> ChangeSet:
    """
    Compares two recipe drafts (dicts or objects with title, servings,
    instructions and ingredients). Pure and total: never raises on
    empty or partial drafts.
    """
    original_ingredients = list(_get(original, 'ingredients') or [])
    refined_ingredients = list(_get(refined, 'ingredients') or [])

    changes = ChangeSet(
        title_changed=_stripped(_get(refined, 'title')) != _stripped(_get(original, 'title')),
        servings_changed=_get(refined, 'servings') != _get(original, 'servings'),
        instructions_changed=(
            _stripped(_get(refined, 'instructions')) != _stripped(_get(original, 'instructions'))
        ),
    )

    pairs = match_ingredients(original_ingredients, refined_ingredients)

    for new_idx, new_ing in enumerate(refined_ingredients):
        if new_idx not in pairs:
            changes.ingredient_changes[new_idx] = set(INGREDIENT_FIELDS)
            continue

        old_ing = original_ingredients[pairs[new_idx]]
        changed_fields = {
            name for name in INGREDIENT_FIELDS
            if normalize_field(_get(new_ing, name)) != normalize_field(_get(old_ing, name))
        }
        if changed_fields:
            changes.ingredient_changes[new_idx] = changed_fields

    return changes


def coerce_draft(payload) -> dict:
    """
    Shapes loosely-typed form state into a draft dict for comparison:
    missing keys become empty values, numeric amounts become display strings.
    """
    payload = payload if isinstance(payload, dict) else {}
    servings = payload.get('servings')
    try:
        servings = int(servings)
    except (TypeError, ValueError, OverflowError):
        pass

    ingredients = []
    for ing in payload.get('ingredients') or []:
        if not isinstance(ing, dict):
            continue
        ingredients.append({
            'name': ing.get('name') or '',
            'amount': clean_amount(ing.get('amount')),
            'unit': ing.get('unit'),
        })

    return {
        'title': payload.get('title') or '',
        'servings': servings,
        'instructions': payload.get('instructions') or '',
        'ingredients': ingredients,
        'source_url': payload.get('source_url'),
    }
