"""Single-slot cache for the most recent recipe list query."""
import time

from flask import current_app

EXTENSION_KEY = 'recipe_list_cache'


class RecipeListCache:
    """
    Remembers the result of the last list query only.
    The app owns one instance (app.extensions['recipe_list_cache']);
    any write to recipes or tags must call invalidate().

    Key, data and timestamp live in one tuple that is swapped in a single
    assignment, so concurrent request threads never see a key paired with
    another query's rows.
    """

    def __init__(self):
        self._entry = None

    @staticmethod
    def make_key(query: str | None, tag_ids=None) -> tuple:
        return ((query or '').strip().lower(), tuple(sorted(tag_ids or ())))

    @property
    def timestamp(self) -> float | None:
        entry = self._entry
        return entry[2] if entry is not None else None

    def get(self, key: tuple):
        entry = self._entry
        if entry is not None and entry[0] == key:
            return entry[1]
        return None

    def set(self, key: tuple, data) -> None:
        self._entry = (key, data, time.time())

    def invalidate(self) -> None:
        self._entry = None


def get_recipe_list_cache() -> RecipeListCache:
    """The cache instance owned by the running app."""
    return current_app.extensions[EXTENSION_KEY]


def invalidate_recipe_list_cache() -> None:
    cache = current_app.extensions.get(EXTENSION_KEY)
    if cache is not None:
        cache.invalidate()
