from __future__ import annotations

from typing import Any, Dict, List, Sequence

import altair as alt
import pandas as pd

from narrative.aggregation import AggregateBucket, format_rate

alt.data_transformers.disable_max_rows()

SURVIVED = "Survived"
DIED = "Did not survive"
OUTCOMES = [SURVIVED, DIED]

SURVIVAL_COLORS = {SURVIVED: "#27ae60", DIED: "#e74c3c"}
CLASS_COLORS = {1: "#3498db", 2: "#f39c12", 3: "#9b59b6"}
GENDER_COLORS = {"male": "#3498db", "female": "#e91e63"}

CHART_WIDTH = 640
CHART_HEIGHT = 360


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _outcome_scale() -> alt.Scale:
    return alt.Scale(domain=OUTCOMES, range=[SURVIVAL_COLORS[o] for o in OUTCOMES])


def legend_entries(counts: Dict[str, int] | None = None) -> List[Dict[str, Any]]:
    entries = []
    for outcome in OUTCOMES:
        label = outcome if counts is None else f"{outcome} ({counts.get(outcome, 0)})"
        entries.append({"label": label, "color": SURVIVAL_COLORS[outcome]})
    return entries


def outcome_rows(buckets: Sequence[AggregateBucket], tooltips: Dict[str, Dict[str, str]] | None = None) -> pd.DataFrame:
    """Long-format rows (one per bucket and outcome) for the bar charts."""
    rows = []
    for bucket in buckets:
        tips = (tooltips or {}).get(bucket.key, {})
        rows.append(
            {
                "key": bucket.key,
                "label": bucket.label,
                "outcome": DIED,
                "count": bucket.died_count,
                "stack_order": 0,
                "rate_label": format_rate(bucket.death_rate, bucket.total),
                "tooltip": tips.get("died", f"{bucket.label}: {bucket.died_count} did not survive"),
            }
        )
        rows.append(
            {
                "key": bucket.key,
                "label": bucket.label,
                "outcome": SURVIVED,
                "count": bucket.survived_count,
                "stack_order": 1,
                "rate_label": format_rate(bucket.survival_rate, bucket.total),
                "tooltip": tips.get("survived", f"{bucket.label}: {bucket.survived_count} survived"),
            }
        )
    return pd.DataFrame(rows)


def survival_pie(buckets: Sequence[AggregateBucket]) -> alt.LayerChart:
    df = pd.DataFrame(
        [
            {
                "label": b.label,
                "total": b.total,
                "share_label": format_rate(b.share, b.total),
                "tooltip": f"{b.label}: {b.total} passengers ({format_rate(b.share, b.total)})",
            }
            for b in buckets
        ]
    )
    radius = min(CHART_WIDTH, CHART_HEIGHT) / 3
    arcs = (
        alt.Chart(df)
        .mark_arc(outerRadius=radius, stroke="white", strokeWidth=3)
        .encode(
            theta=alt.Theta("total:Q", stack=True),
            color=alt.Color("label:N", scale=_outcome_scale(), title=None),
            tooltip=[alt.Tooltip("tooltip:N", title="Passengers")],
        )
    )
    labels = (
        alt.Chart(df)
        .mark_text(radius=radius * 0.6, fontSize=14, fontWeight="bold", color="white")
        .encode(theta=alt.Theta("total:Q", stack=True), text="share_label:N")
    )
    return alt.layer(arcs, labels).properties(width=CHART_WIDTH, height=CHART_HEIGHT)


def stacked_class_bars(
    buckets: Sequence[AggregateBucket],
    *,
    value_axis_max: int,
    tooltips: Dict[str, Dict[str, str]] | None = None,
) -> alt.LayerChart:
    rows = outcome_rows(buckets, tooltips)
    order = [b.label for b in buckets]
    bars = (
        alt.Chart(rows)
        .mark_bar()
        .encode(
            x=alt.X("label:N", sort=order, title="Passenger Class", axis=alt.Axis(labelAngle=0)),
            y=alt.Y(
                "count:Q",
                stack="zero",
                title="Number of Passengers",
                scale=alt.Scale(domain=[0, value_axis_max]),
            ),
            color=alt.Color("outcome:N", scale=_outcome_scale(), title=None),
            order=alt.Order("stack_order:Q"),
            tooltip=[alt.Tooltip("tooltip:N", title="Passengers")],
        )
    )
    totals = pd.DataFrame(
        [{"label": b.label, "total": b.total, "rate_label": format_rate(b.survival_rate, b.total)} for b in buckets]
    )
    rate_labels = (
        alt.Chart(totals)
        .mark_text(dy=-12, fontSize=14, fontWeight="bold", color="#1e3c72")
        .encode(x=alt.X("label:N", sort=order), y=alt.Y("total:Q"), text="rate_label:N")
    )
    return alt.layer(bars, rate_labels).properties(width=CHART_WIDTH, height=CHART_HEIGHT)


def grouped_demographic_bars(
    buckets: Sequence[AggregateBucket],
    *,
    axis_max: int,
    tooltips: Dict[str, Dict[str, str]] | None = None,
) -> alt.LayerChart:
    rows = outcome_rows(buckets, tooltips)
    order = [b.label for b in buckets]
    base = alt.Chart(rows).encode(
        x=alt.X("label:N", sort=order, title=None, axis=alt.Axis(labelAngle=0)),
        xOffset=alt.XOffset("outcome:N", sort=OUTCOMES),
        y=alt.Y(
            "count:Q",
            stack=None,
            title="Number of Passengers",
            scale=alt.Scale(domain=[0, axis_max]),
        ),
    )
    bars = base.mark_bar().encode(
        color=alt.Color("outcome:N", scale=_outcome_scale(), title=None),
        tooltip=[alt.Tooltip("tooltip:N", title="Passengers")],
    )
    rate_labels = base.mark_text(dy=-8, fontSize=11, fontWeight="bold").encode(text="rate_label:N")
    return alt.layer(bars, rate_labels).properties(width=CHART_WIDTH, height=CHART_HEIGHT)
