from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


ALL = "all"
CLASS_FILTER_VALUES = (ALL, "1", "2", "3")
GENDER_FILTER_VALUES = (ALL, "male", "female")


@dataclass(frozen=True)
class FilterState:
    class_filter: str = ALL
    gender_filter: str = ALL

    @property
    def passenger_class(self) -> Optional[int]:
        return None if self.class_filter == ALL else int(self.class_filter)

    @property
    def sex(self) -> Optional[str]:
        return None if self.gender_filter == ALL else self.gender_filter


DEFAULT_FILTERS = FilterState()


def normalize_class_filter(value: object) -> Optional[str]:
    """Return the canonical class filter for ``value``, or None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    s = str(value).strip().lower()
    return s if s in CLASS_FILTER_VALUES else None


def normalize_gender_filter(value: object) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    s = str(value).strip().lower()
    return s if s in GENDER_FILTER_VALUES else None


def normalize_filters(raw: dict, *, current: Optional[FilterState] = None) -> FilterState:
    """Build a FilterState from raw selector values.

    Unrecognized values leave the corresponding filter as it was in ``current``
    (or at its default), so a bad request never changes what is shown.
    """
    base = current or DEFAULT_FILTERS
    class_filter = normalize_class_filter(raw.get("class_filter"))
    gender_filter = normalize_gender_filter(raw.get("gender_filter"))
    return FilterState(
        class_filter=class_filter if class_filter is not None else base.class_filter,
        gender_filter=gender_filter if gender_filter is not None else base.gender_filter,
    )
