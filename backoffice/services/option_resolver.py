"""
Option Resolver

resolve(default_options, global_lists) -> [{"value": ..., "label": ...}]

- ["GLOBAL_COUNTRIES"] (a single sentinel) is replaced by the global list
  it names, in the dictionary's order.
- Anything else is normalised entry by entry: "Red" becomes
  {"value": "Red", "label": "Red"}, {"value": "xl", "label": "XL"} keeps its
  label, a record without a label gets str(value).

Order and duplicates are kept as given. Duplicate values are an authoring
mistake for a human to fix, not something to merge silently.

Pure and cheap: called on every form render. Caching lives in the
OptionDictionary, not here.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from backoffice.core.errors import StructuralError

SENTINEL_PREFIX = "GLOBAL_"


def is_sentinel(entry: Any) -> bool:
    return isinstance(entry, str) and entry.startswith(SENTINEL_PREFIX) and len(entry) > len(SENTINEL_PREFIX)


def sentinel_key(default_options: Optional[Sequence]) -> Optional[str]:
    """
    Dictionary key named by a sentinel option list, else None.

    >>> sentinel_key(["GLOBAL_COUNTRIES"])
    'countries'
    """
    if not default_options or len(default_options) != 1:
        return None
    entry = default_options[0]
    if not is_sentinel(entry):
        return None
    return entry[len(SENTINEL_PREFIX):].lower()


def normalize_option(entry: Any) -> Dict[str, Any]:
    if isinstance(entry, dict):
        if "value" not in entry:
            raise StructuralError(f"Option record without a value: {entry!r}")
        value = entry["value"]
        label = entry.get("label")
        return {"value": value, "label": str(value) if label is None else label}
    return {"value": entry, "label": str(entry)}


def resolve(default_options: Optional[Sequence], global_lists: Mapping[str, Sequence]) -> List[Dict[str, Any]]:
    """Resolve an attribute's defaultOptions into {value, label} records."""
    key = sentinel_key(default_options)
    if key is not None:
        if key not in global_lists:
            raise StructuralError(
                f"Option list '{default_options[0]}' names unknown global list '{key}'"
            )
        return [normalize_option(entry) for entry in global_lists[key]]
    return [normalize_option(entry) for entry in (default_options or [])]
