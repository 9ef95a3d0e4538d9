"""Tests for event dispatch, filter selectors and the story session."""

import pytest

from narrative.aggregation import survival_by_class
from narrative.controllers import (
    CLASS_CONTROLLER,
    GENDER_CONTROLLER,
    StoryEvent,
    StorySession,
    controller_for,
    dispatch,
    parse_event,
)
from narrative.filters import FilterState
from narrative.patches import diff_buckets
from narrative.records import DataLoadError
from narrative.scenes import SCENES, AppState


CLASS_SCENE = AppState(scene_index=1)
DEMOGRAPHIC_SCENE = AppState(scene_index=2)


class TestNavigationEvents:
    def test_next_renders_class_scene_with_gender_controls(self, records):
        state, output = dispatch(records, AppState(), {"kind": "next"})
        assert state.scene_index == 1
        assert output["kind"] == "render"
        assert output["scene"]["scene"] == "class_analysis"
        assert output["controls"]["name"] == "gender"
        assert output["controls"]["selected"] == "all"
        assert output["navigation"]["prev_enabled"] is True

    def test_prev_at_first_scene_is_noop(self, records):
        state = AppState()
        new_state, output = dispatch(records, state, StoryEvent("prev"))
        assert new_state is state
        assert output["kind"] == "noop"

    def test_goto_out_of_range_is_noop(self, records):
        state, output = dispatch(records, CLASS_SCENE, {"kind": "goto", "value": 7})
        assert state is CLASS_SCENE
        assert output["kind"] == "noop"

    def test_navigation_resets_filters(self, records):
        filtered = AppState(scene_index=1, filters=FilterState(gender_filter="female"))
        state, output = dispatch(records, filtered, {"kind": "next"})
        assert state.filters == FilterState()
        assert output["scene"]["indicator"] is None
        assert output["controls"]["selected"] == "all"

    def test_overview_has_no_controls(self, records):
        _, output = dispatch(records, CLASS_SCENE, {"kind": "goto", "value": 0})
        assert output["controls"] is None
        assert output["scene"]["scene"] == "overview"


class TestGenderFilter:
    def test_female_patch(self, records):
        state, patch = dispatch(records, CLASS_SCENE, {"kind": "gender", "value": "female"})
        assert state.filters.gender_filter == "female"
        assert state.scene_index == 1
        assert patch["kind"] == "patch"
        assert patch["labels"] == {"1": "100.0%", "2": "66.7%", "3": "33.3%"}
        assert patch["value_axis_max"] == 3
        assert patch["value_axis_changed"] is True
        assert patch["annotations"][0]["label"] == "Female first class had the highest survival rate at 100.0%"
        assert patch["annotations"][1]["label"] == "Female third class had the lowest survival rate at 33.3%"
        assert patch["controls"]["selected"] == "female"

    def test_male_annotation_subject(self, records):
        _, patch = dispatch(records, CLASS_SCENE, {"kind": "gender", "value": "male"})
        assert patch["annotations"][0]["label"].startswith("Male first class")

    def test_same_value_patch_is_empty(self, records):
        _, patch = dispatch(records, CLASS_SCENE, {"kind": "gender", "value": "all"})
        assert patch["kind"] == "patch"
        assert patch["bars"] == []
        assert patch["labels"] == {}
        assert patch["value_axis_changed"] is False

    def test_not_available_on_overview(self, records):
        state = AppState()
        new_state, output = dispatch(records, state, {"kind": "gender", "value": "male"})
        assert new_state is state
        assert output["kind"] == "noop"

    @pytest.mark.parametrize("value", ["x", "", None, 1])
    def test_invalid_value_is_noop(self, records, value):
        state, output = dispatch(records, CLASS_SCENE, {"kind": "gender", "value": value})
        assert state is CLASS_SCENE
        assert output["kind"] == "noop"


class TestClassFilter:
    def test_class_two_patch(self, records):
        state, patch = dispatch(records, DEMOGRAPHIC_SCENE, {"kind": "class", "value": "2"})
        assert state.filters.class_filter == "2"
        bars = {b["key"]: b["changes"] for b in patch["bars"]}
        assert bars["fc"] == {"survived_count": 1, "total": 1}
        assert patch["axis_max"] == 5
        assert patch["indicator"]["title"] == "Showing Class 2 Passengers Only"
        assert patch["indicator"]["text"] == "6 passengers total • 2 survived (33.3%)"
        assert patch["tooltips"]["fc"]["survived"].startswith("Class 2 Female Children")

    def test_numeric_value_accepted(self, records):
        state, patch = dispatch(records, DEMOGRAPHIC_SCENE, {"kind": "class", "value": 3})
        assert state.filters.class_filter == "3"
        assert patch["indicator"]["text"] == "8 passengers total • 3 survived (37.5%)"

    def test_back_to_all_clears_indicator(self, records):
        state, _ = dispatch(records, DEMOGRAPHIC_SCENE, {"kind": "class", "value": "1"})
        state, patch = dispatch(records, state, {"kind": "class", "value": "all"})
        assert state.filters.class_filter == "all"
        assert patch["indicator"] is None
        assert patch["axis_max"] == 5

    @pytest.mark.parametrize("value", ["4", "0", "first", True])
    def test_invalid_value_is_noop(self, records, value):
        state, output = dispatch(records, DEMOGRAPHIC_SCENE, {"kind": "class", "value": value})
        assert state is DEMOGRAPHIC_SCENE
        assert output["kind"] == "noop"

    def test_not_available_on_class_scene(self, records):
        state, output = dispatch(records, CLASS_SCENE, {"kind": "class", "value": "1"})
        assert state is CLASS_SCENE
        assert output["kind"] == "noop"


class TestEvents:
    def test_unknown_event_is_noop(self, records):
        state, output = dispatch(records, AppState(), {"kind": "zoom"})
        assert output["kind"] == "noop"
        assert "zoom" in output["reason"]

    def test_parse_event_accepts_type_key(self):
        assert parse_event({"type": " NEXT "}) == StoryEvent("next")
        assert parse_event({}) == StoryEvent("")

    def test_controller_lookup(self):
        assert controller_for(SCENES[0]) is None
        assert controller_for(SCENES[1]) is GENDER_CONTROLLER
        assert controller_for(SCENES[2]) is CLASS_CONTROLLER

    def test_diff_lists_only_changed_fields(self, records):
        before = survival_by_class(records)
        after = survival_by_class(records, FilterState(gender_filter="male"))
        changes = {c["key"]: c["changes"] for c in diff_buckets(before, after)}
        # Class 1: 5/6 -> 2/3 survived, one death either way.
        assert set(changes["1"]) == {"survived_count", "total", "survival_rate"}
        assert changes["1"]["survived_count"] == 2


class TestStorySession:
    def test_inert_until_loaded(self):
        session = StorySession()
        assert session.ready is False
        assert session.handle({"kind": "next"})["kind"] == "noop"
        assert session.render()["kind"] == "noop"
        assert session.state == AppState()

    def test_handles_events_in_order(self, records):
        session = StorySession(records)
        session.handle({"kind": "next"})
        session.handle({"kind": "gender", "value": "male"})
        assert session.state == AppState(scene_index=1, filters=FilterState(gender_filter="male"))
        session.handle({"kind": "next"})
        assert session.state == AppState(scene_index=2)
        assert session.render()["scene"]["scene"] == "demographic_analysis"

    def test_view_advances_on_navigation_only(self, records):
        session = StorySession(records)
        session.handle({"kind": "goto", "value": 2})
        view = session.view
        session.handle({"kind": "class", "value": "1"})
        session.handle({"kind": "next"})
        assert session.view == view
        session.handle({"kind": "goto", "value": 2})
        assert session.view == view + 1
        assert session.state.filters == FilterState()

    def test_load_from_path(self, manifest_csv):
        session = StorySession()
        session.load(manifest_csv)
        assert session.ready
        assert len(session.records) == 20

    def test_load_failure_keeps_session_inert(self, tmp_path):
        session = StorySession()
        with pytest.raises(DataLoadError):
            session.load(tmp_path / "missing.csv")
        assert session.ready is False
