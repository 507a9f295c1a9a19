"""Status/assignee filter values: a display name or a numeric id.

Raw values arrive from the HTTP layer as a list, a comma-separated string, or
nothing at all. They are classified once here, so nothing downstream needs to
guess whether "7" meant an id or a name.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class NameFilter:
    name: str


@dataclass(frozen=True)
class IdFilter:
    value: int


FilterValue = NameFilter | IdFilter


def parse_filter_value(raw: str | int | None) -> FilterValue | None:
    """Classify one raw value. None and blank strings give None."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise TypeError(f"Unsupported filter value: {raw!r}")
    if isinstance(raw, int):
        return IdFilter(raw)
    text = str(raw).strip()
    if not text:
        return None
    if text.isascii() and text.isdigit():
        return IdFilter(int(text))
    return NameFilter(text)


def parse_filter_values(raw: str | int | list[str | int] | None) -> list[FilterValue]:
    """Normalize a raw filter into distinct values, first occurrence first."""
    if raw is None:
        return []
    if isinstance(raw, str):
        items: list[str | int] = raw.split(",")
    elif isinstance(raw, int) and not isinstance(raw, bool):
        items = [raw]
    else:
        items = list(raw)

    values: list[FilterValue] = []
    for item in items:
        value = parse_filter_value(item)
        if value is not None and value not in values:
            values.append(value)
    return values


def split_filter_values(values: list[FilterValue]) -> tuple[list[str], list[int]]:
    """Separate names from ids, preserving order within each."""
    names = [v.name for v in values if isinstance(v, NameFilter)]
    ids = [v.value for v in values if isinstance(v, IdFilter)]
    return names, ids
