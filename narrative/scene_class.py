from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Sequence

from narrative.aggregation import AggregateBucket, format_rate, survival_by_class
from narrative.charts import legend_entries, stacked_class_bars, to_vega_spec
from narrative.filters import DEFAULT_FILTERS, FilterState
from narrative.patches import diff_buckets, diff_labels
from narrative.records import RecordCollection


logger = logging.getLogger(__name__)

# Annotation subjects for the first/third class notes, keyed by gender filter.
_GENDER_SUBJECTS = {
    "all": ("First", "Third"),
    "male": ("Male first", "Male third"),
    "female": ("Female first", "Female third"),
}


def class_value_axis_max(buckets: Sequence[AggregateBucket]) -> int:
    return max([b.total for b in buckets] + [1])


def class_rate_labels(buckets: Sequence[AggregateBucket]) -> Dict[str, str]:
    return {b.key: format_rate(b.survival_rate, b.total) for b in buckets}


def class_tooltips(buckets: Sequence[AggregateBucket]) -> Dict[str, Dict[str, str]]:
    return {
        b.key: {
            "survived": f"{b.label} - Survived: {b.survived_count} passengers ({format_rate(b.survival_rate, b.total)})",
            "died": f"{b.label} - Did not survive: {b.died_count} passengers ({format_rate(b.death_rate, b.total)})",
        }
        for b in buckets
    }


def class_annotations(buckets: Sequence[AggregateBucket], gender_filter: str) -> List[Dict[str, Any]]:
    first, third = buckets[0], buckets[-1]
    first_subject, third_subject = _GENDER_SUBJECTS.get(gender_filter, _GENDER_SUBJECTS["all"])
    return [
        {
            "title": "Class Privilege",
            "label": f"{first_subject} class had the highest survival rate at {format_rate(first.survival_rate, first.total)}",
            "anchor": first.key,
        },
        {
            "title": "Limited Access",
            "label": f"{third_subject} class had the lowest survival rate at {format_rate(third.survival_rate, third.total)}",
            "anchor": third.key,
        },
    ]


def compute_class_scene(records: RecordCollection, filters: FilterState = DEFAULT_FILTERS) -> Dict[str, Any]:
    buckets = survival_by_class(records, filters)
    axis_max = class_value_axis_max(buckets)
    tooltips = class_tooltips(buckets)
    chart = stacked_class_bars(buckets, value_axis_max=axis_max, tooltips=tooltips)
    return {
        "scene": "class_analysis",
        "filters": asdict(filters),
        "buckets": [b.to_dict() for b in buckets],
        "labels": class_rate_labels(buckets),
        "tooltips": tooltips,
        "value_axis_max": axis_max,
        "legend": legend_entries(),
        "annotations": class_annotations(buckets, filters.gender_filter),
        "indicator": None,
        "charts": {"survival_by_class": to_vega_spec(chart)},
    }


def patch_class_scene(records: RecordCollection, previous: FilterState, filters: FilterState) -> Dict[str, Any]:
    """Instructions to move the class chart from ``previous`` to ``filters``.

    Axes, legend and the class domain stay as drawn; only bar values, rate
    labels, the value axis bound and annotation text are reissued.
    """
    before = survival_by_class(records, previous)
    after = survival_by_class(records, filters)
    axis_before = class_value_axis_max(before)
    axis_after = class_value_axis_max(after)
    logger.debug("class scene gender filter %s -> %s", previous.gender_filter, filters.gender_filter)
    return {
        "kind": "patch",
        "scene": "class_analysis",
        "filters": asdict(filters),
        "bars": diff_buckets(before, after),
        "labels": diff_labels(class_rate_labels(before), class_rate_labels(after)),
        "tooltips": class_tooltips(after),
        "value_axis_max": axis_after,
        "value_axis_changed": axis_after != axis_before,
        "annotations": class_annotations(after, filters.gender_filter),
        "indicator": None,
    }
