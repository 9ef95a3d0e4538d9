from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

from narrative.aggregation import (
    AggregateBucket,
    demographic_axis_max,
    filtered_summary,
    format_rate,
    survival_by_demographic,
)
from narrative.charts import grouped_demographic_bars, legend_entries, to_vega_spec
from narrative.filters import ALL, DEFAULT_FILTERS, FilterState
from narrative.patches import diff_buckets, diff_labels
from narrative.records import RecordCollection


logger = logging.getLogger(__name__)


def demographic_rate_labels(buckets: Sequence[AggregateBucket]) -> Dict[str, Dict[str, str]]:
    return {
        b.key: {
            "survived": format_rate(b.survival_rate, b.total),
            "died": format_rate(b.death_rate, b.total),
        }
        for b in buckets
    }


def demographic_tooltips(buckets: Sequence[AggregateBucket], class_filter: str = ALL) -> Dict[str, Dict[str, str]]:
    prefix = "" if class_filter == ALL else f"Class {class_filter} "
    return {
        b.key: {
            "survived": f"{prefix}{b.label}: {b.survived_count} survived ({format_rate(b.survival_rate, b.total)})",
            "died": f"{prefix}{b.label}: {b.died_count} did not survive",
        }
        for b in buckets
    }


def demographic_annotations(buckets: Sequence[AggregateBucket]) -> List[Dict[str, Any]]:
    by_key = {b.key: b for b in buckets}
    female_children = by_key["fc"]
    return [
        {
            "title": "Gender Difference",
            "label": "Women had much higher survival rates than men",
            "anchor": "fa",
        },
        {
            "title": "Children First",
            "label": "Children had priority over adults of the same gender",
            "anchor": "mc",
        },
        {
            "title": "Highest Priority",
            "label": (
                "Female children had the highest survival rate at "
                f"{format_rate(female_children.survival_rate, female_children.total)}"
            ),
            "anchor": "fc",
        },
    ]


def class_indicator(records: RecordCollection, filters: FilterState) -> Optional[Dict[str, Any]]:
    """Filtered-view banner; counts every passenger of the class, known age or not."""
    if filters.class_filter == ALL:
        return None
    summary = filtered_summary(records, FilterState(class_filter=filters.class_filter))
    rate = format_rate(summary.survival_rate, summary.total)
    return {
        "title": f"Showing Class {filters.class_filter} Passengers Only",
        "text": f"{summary.total} passengers total • {summary.survived_count} survived ({rate})",
        "total": summary.total,
        "survived": summary.survived_count,
        "survival_rate": summary.survival_rate,
    }


def compute_demographic_scene(
    records: RecordCollection,
    filters: FilterState = DEFAULT_FILTERS,
    *,
    axis_max: Optional[int] = None,
) -> Dict[str, Any]:
    if axis_max is None:
        axis_max = demographic_axis_max(records)
    buckets = survival_by_demographic(records, filters)
    tooltips = demographic_tooltips(buckets, filters.class_filter)
    chart = grouped_demographic_bars(buckets, axis_max=axis_max, tooltips=tooltips)
    return {
        "scene": "demographic_analysis",
        "filters": asdict(filters),
        "buckets": [b.to_dict() for b in buckets],
        "labels": demographic_rate_labels(buckets),
        "tooltips": tooltips,
        "axis_max": axis_max,
        "legend": legend_entries(),
        "annotations": demographic_annotations(buckets),
        "indicator": class_indicator(records, filters),
        "charts": {"survival_by_demographic": to_vega_spec(chart)},
    }


def patch_demographic_scene(records: RecordCollection, previous: FilterState, filters: FilterState) -> Dict[str, Any]:
    """Instructions to move the demographic chart from ``previous`` to ``filters``.

    Bars are re-measured against the fixed axis bound, which never changes
    with the class filter.
    """
    before = survival_by_demographic(records, previous)
    after = survival_by_demographic(records, filters)
    logger.debug("demographic scene class filter %s -> %s", previous.class_filter, filters.class_filter)
    return {
        "kind": "patch",
        "scene": "demographic_analysis",
        "filters": asdict(filters),
        "bars": diff_buckets(before, after),
        "labels": diff_labels(demographic_rate_labels(before), demographic_rate_labels(after)),
        "tooltips": demographic_tooltips(after, filters.class_filter),
        "axis_max": demographic_axis_max(records),
        "annotations": demographic_annotations(after),
        "indicator": class_indicator(records, filters),
    }
