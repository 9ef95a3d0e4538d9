"""Survival statistics feeding every scene chart.

All functions here are pure: they read the record collection, never modify
it, and return buckets in a fixed order (classes 1 to 3, demographic groups
in ``DEMOGRAPHIC_GROUPS`` order) so identical inputs give identical output.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Sequence

import pandas as pd

from narrative.filters import CLASS_FILTER_VALUES, DEFAULT_FILTERS, FilterState
from narrative.records import PASSENGER_CLASSES, RecordCollection


CHILD_AGE_CUTOFF = 16
AXIS_PADDING = 1.1


@dataclass(frozen=True)
class AggregateBucket:
    key: str
    label: str
    survived_count: int
    died_count: int
    total: int
    survival_rate: float
    share: float = 0.0

    @property
    def death_rate(self) -> float:
        return 1.0 - self.survival_rate if self.total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DemographicGroup:
    key: str
    label: str
    sex: str
    age_group: str


DEMOGRAPHIC_GROUPS = (
    DemographicGroup("fc", "Female Children", "female", "child"),
    DemographicGroup("fa", "Female Adults", "female", "adult"),
    DemographicGroup("mc", "Male Children", "male", "child"),
    DemographicGroup("ma", "Male Adults", "male", "adult"),
)


def survival_rate(survived: int, total: int) -> float:
    """survived / total, defined as 0.0 for an empty group."""
    if total <= 0:
        return 0.0
    return survived / total


def _share(part: int, whole: int) -> float:
    return part / whole if whole > 0 else 0.0


def format_rate(rate: float, total: int, decimals: int = 1) -> str:
    if total <= 0:
        return "0%"
    return f"{rate * 100:.{decimals}f}%"


def make_bucket(key: str, label: str, survived: int, total: int, grouping_total: int) -> AggregateBucket:
    survived = int(survived)
    total = int(total)
    return AggregateBucket(
        key=key,
        label=label,
        survived_count=survived,
        died_count=total - survived,
        total=total,
        survival_rate=survival_rate(survived, total),
        share=_share(total, grouping_total),
    )


def apply_filters(records: RecordCollection, filters: FilterState = DEFAULT_FILTERS) -> pd.DataFrame:
    df = records.to_frame()
    pclass = filters.passenger_class
    if pclass is not None:
        df = df[df["pclass"] == pclass]
    sex = filters.sex
    if sex is not None:
        df = df[df["sex"] == sex]
    return df


def global_survival(records: RecordCollection) -> List[AggregateBucket]:
    """Survived vs. did-not-survive over the whole collection; filters do not apply."""
    df = records.to_frame()
    total = len(df)
    survived = int(df["survived"].sum())
    died = total - survived
    return [
        make_bucket("survived", "Survived", survived, survived, total),
        make_bucket("died", "Did not survive", 0, died, total),
    ]


def survival_by_class(records: RecordCollection, filters: FilterState = DEFAULT_FILTERS) -> List[AggregateBucket]:
    df = apply_filters(records, filters)
    stats = (
        df.groupby("pclass")["survived"]
        .agg(survived="sum", total="count")
        .reindex(list(PASSENGER_CLASSES), fill_value=0)
    )
    grouping_total = len(df)
    return [
        make_bucket(str(pclass), f"Class {pclass}", stats.at[pclass, "survived"], stats.at[pclass, "total"], grouping_total)
        for pclass in PASSENGER_CLASSES
    ]


def demographic_frame(records: RecordCollection, filters: FilterState = DEFAULT_FILTERS) -> pd.DataFrame:
    """Filtered passengers eligible for the demographic view, tagged child/adult.

    Passengers with unknown age (or sex outside male/female) are left out here
    only; the overview and class views still count them.
    """
    df = apply_filters(records, filters)
    df = df[df["age"].notna() & df["sex"].isin([g.sex for g in DEMOGRAPHIC_GROUPS])].copy()
    df["age_group"] = (df["age"] < CHILD_AGE_CUTOFF).map({True: "child", False: "adult"})
    return df


def survival_by_demographic(records: RecordCollection, filters: FilterState = DEFAULT_FILTERS) -> List[AggregateBucket]:
    df = demographic_frame(records, filters)
    grouping_total = len(df)
    buckets = []
    for group in DEMOGRAPHIC_GROUPS:
        members = df[(df["sex"] == group.sex) & (df["age_group"] == group.age_group)]
        buckets.append(make_bucket(group.key, group.label, members["survived"].sum(), len(members), grouping_total))
    return buckets


def demographic_axis_max(records: RecordCollection, *, padding: float = AXIS_PADDING) -> int:
    """Upper bound of the demographic count axis, shared by every class filter.

    Takes the tallest bar (survived or died) over class filters all/1/2/3 and
    pads it, so switching the class filter only changes bar heights.
    """
    peak = 0
    for class_filter in CLASS_FILTER_VALUES:
        for bucket in survival_by_demographic(records, FilterState(class_filter=class_filter)):
            peak = max(peak, bucket.survived_count, bucket.died_count)
    return max(1, int(math.ceil(peak * padding)))


def filtered_summary(records: RecordCollection, filters: FilterState = DEFAULT_FILTERS) -> AggregateBucket:
    df = apply_filters(records, filters)
    total = len(df)
    return make_bucket("filtered", "Filtered passengers", df["survived"].sum(), total, total)


def buckets_frame(buckets: Sequence[AggregateBucket]) -> pd.DataFrame:
    columns = list(AggregateBucket.__dataclass_fields__)
    return pd.DataFrame([b.to_dict() for b in buckets], columns=columns)
