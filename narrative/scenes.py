from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from narrative.aggregation import format_rate, global_survival
from narrative.filters import FilterState
from narrative.records import RecordCollection


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SceneSpec:
    key: str
    kind: str
    title: str
    description: str


SCENES: Tuple[SceneSpec, ...] = (
    SceneSpec(
        key="overview",
        kind="overview",
        title="The Tragedy Unfolds",
        description=(
            "On April 15, 1912, the RMS Titanic sank in the North Atlantic. Of the {total} passengers "
            "in this manifest, only {survived} survived ({survival_rate}). Let's explore the survival "
            "patterns of the passengers."
        ),
    ),
    SceneSpec(
        key="class_analysis",
        kind="class_analysis",
        title="Class Matters: The Stark Reality",
        description=(
            "Passenger class played a crucial role in survival. First-class passengers had significantly "
            "higher survival rates than those in second and third class."
        ),
    ),
    SceneSpec(
        key="demographic_analysis",
        kind="demographic_analysis",
        title="Women and Children First",
        description=(
            "The maritime tradition of 'women and children first' is clearly visible in the Titanic data. "
            "Gender and age were critical factors in determining who survived."
        ),
    ),
)


@dataclass(frozen=True)
class AppState:
    """Where the viewer is: current scene and that scene's filter selections."""

    scene_index: int = 0
    filters: FilterState = field(default_factory=FilterState)


def _check_scene_count(scene_count: int) -> None:
    if scene_count < 1:
        raise ValueError(f"scene_count must be at least 1, got {scene_count}")


def clamp_index(index: int, scene_count: int) -> int:
    _check_scene_count(scene_count)
    return max(0, min(scene_count - 1, index))


def _as_scene_index(value: object) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def next_scene(state: AppState, scene_count: int = len(SCENES)) -> AppState:
    """Advance one scene; at the last scene the same state is returned."""
    target = min(clamp_index(state.scene_index, scene_count) + 1, scene_count - 1)
    if target == state.scene_index:
        return state
    return AppState(scene_index=target)


def prev_scene(state: AppState, scene_count: int = len(SCENES)) -> AppState:
    target = max(clamp_index(state.scene_index, scene_count) - 1, 0)
    if target == state.scene_index:
        return state
    return AppState(scene_index=target)


def goto_scene(state: AppState, index: object, scene_count: int = len(SCENES)) -> AppState:
    """Jump to ``index`` with fresh filters; invalid indices return the same state."""
    _check_scene_count(scene_count)
    target = _as_scene_index(index)
    if target is None or not 0 <= target < scene_count:
        logger.debug("ignoring goto(%r) with %d scenes", index, scene_count)
        return state
    return AppState(scene_index=target)


def current_scene(state: AppState, scenes: Sequence[SceneSpec] = SCENES) -> SceneSpec:
    return scenes[clamp_index(state.scene_index, len(scenes))]


def navigation_state(state: AppState, scene_count: int = len(SCENES)) -> Dict[str, Any]:
    index = clamp_index(state.scene_index, scene_count)
    return {
        "scene_index": index,
        "scene_count": scene_count,
        "prev_enabled": index > 0,
        "next_enabled": index < scene_count - 1,
        "dots": [{"index": i, "active": i == index} for i in range(scene_count)],
    }


def scene_content(state: AppState, records: RecordCollection, scenes: Sequence[SceneSpec] = SCENES) -> Dict[str, str]:
    scene = current_scene(state, scenes)
    survived = global_survival(records)[0]
    context = {
        "total": len(records),
        "survived": survived.total,
        "survival_rate": format_rate(survived.share, survived.total),
    }
    return {"key": scene.key, "title": scene.title, "description": scene.description.format(**context)}
