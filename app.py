import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import streamlit as st

from narrative.controllers import StorySession
from narrative.records import DataLoadError, resolve_data_path

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .scene-title {font-size: 1.6rem;font-weight: 700;color: #1e3c72;margin-bottom: 4px;}
        .scene-description {color: #374151;font-size: 1.0rem;margin-bottom: 12px;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .annotation {border-left: 3px solid #2a5298;padding: 4px 10px;margin-bottom: 8px;}
        .annotation-title {font-weight: 700;color: #1e3c72;}
        .scene-dots {display: flex;gap: 8px;justify-content: center;margin: 6px 0 12px;}
        .scene-dot {width: 12px;height: 12px;border-radius: 50%;background: #d1d5db;}
        .scene-dot.active {background: #2a5298;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_dots(navigation: Dict[str, Any]):
    dots = "".join(
        f"<span class='scene-dot{' active' if d['active'] else ''}'></span>" for d in navigation["dots"]
    )
    st.markdown(f"<div class='scene-dots'>{dots}</div>", unsafe_allow_html=True)


def render_annotations(annotations: List[Dict[str, str]]):
    for note in annotations:
        st.markdown(
            f"<div class='annotation'><div class='annotation-title'>{note['title']}</div>{note['label']}</div>",
            unsafe_allow_html=True,
        )


def render_indicator(indicator: Optional[Dict[str, Any]]):
    if indicator is None:
        return
    st.info(f"**{indicator['title']}**  \n{indicator['text']}")


# ---------- Event handlers ----------
def send(event: Dict[str, Any]):
    st.session_state["story"].handle(event)


def on_filter_change(controller_name: str, widget_key: str):
    send({"kind": controller_name, "value": st.session_state[widget_key]})


def render_controls(controls: Optional[Dict[str, Any]], view: int):
    if controls is None:
        return
    values = [o["value"] for o in controls["options"]]
    labels = {o["value"]: o["label"] for o in controls["options"]}
    widget_key = f"filter_{controls['name']}_{view}"
    st.selectbox(
        controls["label"],
        options=values,
        index=values.index(controls["selected"]),
        format_func=lambda v: labels[v],
        key=widget_key,
        on_change=on_filter_change,
        args=(controls["name"], widget_key),
    )


# ---------- UI setup ----------
st.set_page_config(page_title="Titanic: A Narrative Visualization", layout="wide")
inject_base_styles()

if "story" not in st.session_state:
    session = StorySession()
    try:
        session.load()
    except DataLoadError as exc:
        st.error(f"Error loading Titanic dataset: {exc.reason}. Place titanic3.csv at {resolve_data_path()}.")
        st.stop()
    st.session_state["story"] = session

story: StorySession = st.session_state["story"]
output = story.render()
navigation = output["navigation"]
content = output["content"]
payload = output["scene"]

nav_cols = st.columns([1, 6, 1])
nav_cols[0].button(
    "← Previous",
    disabled=not navigation["prev_enabled"],
    on_click=send,
    args=({"kind": "prev"},),
)
nav_cols[2].button(
    "Next →",
    disabled=not navigation["next_enabled"],
    on_click=send,
    args=({"kind": "next"},),
)
with nav_cols[1]:
    render_dots(navigation)
    jump_cols = st.columns(navigation["scene_count"])
    for dot in navigation["dots"]:
        jump_cols[dot["index"]].button(
            f"Scene {dot['index'] + 1}",
            key=f"goto_{dot['index']}",
            type="primary" if dot["active"] else "secondary",
            on_click=send,
            args=({"kind": "goto", "value": dot["index"]},),
        )

st.markdown(f"<div class='scene-title'>{content['title']}</div>", unsafe_allow_html=True)
st.markdown(f"<div class='scene-description'>{content['description']}</div>", unsafe_allow_html=True)

chart_col, note_col = st.columns([3, 1])
with chart_col:
    for spec in payload["charts"].values():
        st.vega_lite_chart(spec, width="stretch")
    render_controls(output["controls"], story.view)
with note_col:
    with card("Annotations"):
        render_annotations(payload["annotations"])
    render_indicator(payload.get("indicator"))
