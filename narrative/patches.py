from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

from narrative.aggregation import AggregateBucket


PATCH_FIELDS = ("survived_count", "died_count", "total", "survival_rate")


def diff_buckets(previous: Sequence[AggregateBucket], current: Sequence[AggregateBucket]) -> List[Dict[str, Any]]:
    """Per-bucket changes between two renders of the same grouping.

    Only fields that differ are listed; a bucket with no changes is omitted.
    """
    before = {b.key: b for b in previous}
    changes: List[Dict[str, Any]] = []
    for bucket in current:
        old = before.get(bucket.key)
        changed = {
            name: getattr(bucket, name)
            for name in PATCH_FIELDS
            if old is None or getattr(old, name) != getattr(bucket, name)
        }
        if changed:
            changes.append({"key": bucket.key, "label": bucket.label, "changes": changed})
    return changes


def diff_labels(previous: Mapping[str, Any], current: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in current.items() if previous.get(key) != value}
