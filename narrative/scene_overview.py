from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Sequence

from narrative.aggregation import AggregateBucket, format_rate, global_survival
from narrative.charts import legend_entries, survival_pie, to_vega_spec
from narrative.filters import DEFAULT_FILTERS, FilterState
from narrative.records import RecordCollection


def overview_annotations(buckets: Sequence[AggregateBucket]) -> List[Dict[str, Any]]:
    survived = buckets[0]
    return [
        {
            "title": "Low Survival Rate",
            "label": f"Only {format_rate(survived.share, survived.total)} of passengers survived",
            "anchor": survived.key,
        }
    ]


def compute_overview_scene(records: RecordCollection, filters: FilterState = DEFAULT_FILTERS) -> Dict[str, Any]:
    buckets = global_survival(records)
    labels = {b.key: format_rate(b.share, b.total) for b in buckets}
    counts = {b.label: b.total for b in buckets}
    return {
        "scene": "overview",
        "filters": asdict(filters),
        "buckets": [b.to_dict() for b in buckets],
        "labels": labels,
        "legend": legend_entries(counts),
        "annotations": overview_annotations(buckets),
        "indicator": None,
        "charts": {"survival_pie": to_vega_spec(survival_pie(buckets))},
    }
