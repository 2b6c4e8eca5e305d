"""Field lookup for building search matches from an explicit list of fields."""

from typing import Any, List, Mapping, NamedTuple, Optional, Sequence, Union

from .types import SearchMatch

Scalar = Union[str, int, float]


class FieldSpec(NamedTuple):
    """A searchable field: dotted ``path`` into nested mappings, display ``label``, match ``type``."""
    path: str
    label: str
    type: str = "field"


def resolve_field(record: Mapping[str, Any], path: str) -> Optional[Scalar]:
    """
    Resolve a dotted path over nested mappings.

    Only mappings are traversed and only scalar leaves are returned; anything
    else (missing key, list, nested object at the leaf) resolves to None.
    """
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]

    if isinstance(current, bool) or not isinstance(current, (str, int, float)):
        return None
    return current


def search_in_fields(
    record: Mapping[str, Any],
    query: str,
    fields: Sequence[FieldSpec],
) -> List[SearchMatch]:
    """Case-insensitive substring search over the given fields of ``record``."""
    needle = query.lower()
    if not needle:
        return []

    matches: List[SearchMatch] = []
    for spec in fields:
        value = resolve_field(record, spec.path)
        if value is None or value == "":
            continue
        text = str(value)
        if needle in text.lower():
            matches.append(SearchMatch(type=spec.type, label=spec.label, value=text, field=spec.path))
    return matches
