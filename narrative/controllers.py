"""Scene-local filter selectors and the event dispatcher.

Every UI interaction is a ``StoryEvent``. ``dispatch`` turns one event into a
new ``AppState`` plus the output the surface needs: a full render after
navigation, a patch after a filter change, or a no-op for anything that
does not apply.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from narrative.filters import FilterState, normalize_class_filter, normalize_gender_filter
from narrative.records import RecordCollection, load_story_data
from narrative.scene_class import compute_class_scene, patch_class_scene
from narrative.scene_demographic import compute_demographic_scene, patch_demographic_scene
from narrative.scene_overview import compute_overview_scene
from narrative.scenes import (
    SCENES,
    AppState,
    SceneSpec,
    current_scene,
    goto_scene,
    navigation_state,
    next_scene,
    prev_scene,
    scene_content,
)


logger = logging.getLogger(__name__)

SCENE_RENDERERS: Dict[str, Callable[[RecordCollection, FilterState], Dict[str, Any]]] = {
    "overview": compute_overview_scene,
    "class_analysis": compute_class_scene,
    "demographic_analysis": compute_demographic_scene,
}

SCENE_PATCHERS: Dict[str, Callable[[RecordCollection, FilterState, FilterState], Dict[str, Any]]] = {
    "class_analysis": patch_class_scene,
    "demographic_analysis": patch_demographic_scene,
}

NAVIGATION_EVENTS = ("next", "prev", "goto")


@dataclass(frozen=True)
class FilterOption:
    value: str
    label: str


@dataclass(frozen=True)
class FilterController:
    name: str
    field: str
    scene_kind: str
    label: str
    options: Tuple[FilterOption, ...]
    normalize: Callable[[object], Optional[str]]

    @property
    def values(self) -> Tuple[str, ...]:
        return tuple(o.value for o in self.options)

    def apply(self, state: AppState, value: object) -> Optional[AppState]:
        """New state with this selector set to ``value``; None if the value is not an option."""
        normalized = self.normalize(value)
        if normalized is None:
            return None
        return replace(state, filters=replace(state.filters, **{self.field: normalized}))

    def describe(self, filters: FilterState) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "options": [asdict(o) for o in self.options],
            "selected": getattr(filters, self.field),
        }


GENDER_CONTROLLER = FilterController(
    name="gender",
    field="gender_filter",
    scene_kind="class_analysis",
    label="Filter by Gender",
    options=(
        FilterOption("all", "All Genders"),
        FilterOption("male", "Male"),
        FilterOption("female", "Female"),
    ),
    normalize=normalize_gender_filter,
)

CLASS_CONTROLLER = FilterController(
    name="class",
    field="class_filter",
    scene_kind="demographic_analysis",
    label="Filter by Class",
    options=(
        FilterOption("all", "All Classes"),
        FilterOption("1", "Class 1"),
        FilterOption("2", "Class 2"),
        FilterOption("3", "Class 3"),
    ),
    normalize=normalize_class_filter,
)

CONTROLLERS: Dict[str, FilterController] = {c.name: c for c in (GENDER_CONTROLLER, CLASS_CONTROLLER)}


def controller_for(scene: SceneSpec) -> Optional[FilterController]:
    for controller in CONTROLLERS.values():
        if controller.scene_kind == scene.kind:
            return controller
    return None


@dataclass(frozen=True)
class StoryEvent:
    kind: str
    value: Any = None


def parse_event(raw: Mapping[str, Any]) -> StoryEvent:
    kind = str(raw.get("kind") or raw.get("type") or "").strip().lower()
    return StoryEvent(kind=kind, value=raw.get("value"))


def _noop(state: AppState, reason: str) -> Dict[str, Any]:
    return {"kind": "noop", "reason": reason, "scene_index": state.scene_index}


def render_scene(records: RecordCollection, state: AppState, scenes: Sequence[SceneSpec] = SCENES) -> Dict[str, Any]:
    """Full render of the current scene: navigation, text, chart payload and controls."""
    scene = current_scene(state, scenes)
    renderer = SCENE_RENDERERS[scene.kind]
    controller = controller_for(scene)
    return {
        "kind": "render",
        "navigation": navigation_state(state, len(scenes)),
        "content": scene_content(state, records, scenes),
        "scene": renderer(records, state.filters),
        "controls": controller.describe(state.filters) if controller is not None else None,
    }


def _navigate(state: AppState, event: StoryEvent, scene_count: int) -> AppState:
    if event.kind == "next":
        return next_scene(state, scene_count)
    if event.kind == "prev":
        return prev_scene(state, scene_count)
    return goto_scene(state, event.value, scene_count)


def dispatch(
    records: RecordCollection,
    state: AppState,
    event: Union[StoryEvent, Mapping[str, Any]],
    scenes: Sequence[SceneSpec] = SCENES,
) -> Tuple[AppState, Dict[str, Any]]:
    if not isinstance(event, StoryEvent):
        event = parse_event(event)

    if event.kind in NAVIGATION_EVENTS:
        new_state = _navigate(state, event, len(scenes))
        if new_state is state:
            return state, _noop(state, f"{event.kind} is out of range")
        logger.debug("scene %d -> %d", state.scene_index, new_state.scene_index)
        return new_state, render_scene(records, new_state, scenes)

    controller = CONTROLLERS.get(event.kind)
    if controller is None:
        return state, _noop(state, f"unknown event {event.kind!r}")

    scene = current_scene(state, scenes)
    if scene.kind != controller.scene_kind:
        return state, _noop(state, f"{controller.name} filter is not available on scene {scene.key!r}")

    new_state = controller.apply(state, event.value)
    if new_state is None:
        return state, _noop(state, f"invalid {controller.name} filter value {event.value!r}")

    patch = SCENE_PATCHERS[scene.kind](records, state.filters, new_state.filters)
    patch["controls"] = controller.describe(new_state.filters)
    return new_state, patch


class StorySession:
    """One viewer's slideshow: holds the AppState and handles events in order.

    Until records are loaded the session is inert and every event is a no-op.
    ``view`` counts full renders caused by navigation; a surface can key its
    widgets on it so that selectors start over with the reset filters.
    """

    def __init__(self, records: Optional[RecordCollection] = None, scenes: Sequence[SceneSpec] = SCENES):
        self.records = records
        self.scenes = scenes
        self.state = AppState()
        self.view = 0

    @property
    def ready(self) -> bool:
        return self.records is not None

    def load(self, path=None) -> RecordCollection:
        self.records = load_story_data(path)
        self.state = AppState()
        self.view += 1
        return self.records

    def handle(self, event: Union[StoryEvent, Mapping[str, Any]]) -> Dict[str, Any]:
        if self.records is None:
            return _noop(self.state, "data not loaded")
        self.state, output = dispatch(self.records, self.state, event, self.scenes)
        if output["kind"] == "render":
            self.view += 1
        return output

    def render(self) -> Dict[str, Any]:
        if self.records is None:
            return _noop(self.state, "data not loaded")
        return render_scene(self.records, self.state, self.scenes)
