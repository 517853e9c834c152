"""
Global Option Dictionary

Process-wide enumerations (countries, languages) that attribute options can
point at with a sentinel such as ["GLOBAL_COUNTRIES"] instead of copying the
list into every attribute.

Lifecycle:
    load()     populate once (startup or first read), no-op afterwards
    lists      read-only view, loads on first access
    refresh()  explicit reload, the only way the contents change

No locking: the lists are replaced wholesale and never mutated in place.
"""

from functools import lru_cache
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import pycountry
from loguru import logger


def load_iso_lists() -> Dict[str, List[str]]:
    """Country names (ISO 3166-1) and language names (ISO 639-1), sorted."""
    countries = sorted(country.name for country in pycountry.countries)
    languages = sorted(
        language.name for language in pycountry.languages
        if getattr(language, "alpha_2", None)
    )
    return {"countries": countries, "languages": languages}


class OptionDictionary:
    """
    Holds the global lists.

    Args:
        loader: callable returning {key: [entries]}. Defaults to the ISO
            lists; tests pass a fixed dict.
    """

    def __init__(self, loader: Optional[Callable[[], Mapping[str, Sequence]]] = None):
        self._loader = loader or load_iso_lists
        self._lists: Optional[Mapping[str, Tuple]] = None

    @property
    def is_loaded(self) -> bool:
        return self._lists is not None

    def load(self) -> None:
        if self._lists is None:
            self.refresh()

    def refresh(self) -> None:
        data = self._loader()
        self._lists = MappingProxyType({key: tuple(values) for key, values in data.items()})
        sizes = ", ".join(f"{key}={len(values)}" for key, values in self._lists.items())
        logger.info(f"Global option dictionary loaded ({sizes})")

    @property
    def lists(self) -> Mapping[str, Tuple]:
        self.load()
        return self._lists

    def keys(self) -> List[str]:
        return list(self.lists.keys())

    def as_dict(self) -> Dict[str, List]:
        """Plain-JSON copy, e.g. for GET /data/static-lists."""
        return {key: list(values) for key, values in self.lists.items()}


@lru_cache()
def get_option_dictionary() -> OptionDictionary:
    return OptionDictionary()
