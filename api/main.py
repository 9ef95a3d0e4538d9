from __future__ import annotations

from dataclasses import asdict
import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder

from api.schemas import AppStateModel, DispatchRequest, FilterStateModel
from narrative.aggregation import buckets_frame, global_survival, survival_by_class, survival_by_demographic
from narrative.controllers import StoryEvent, controller_for, dispatch, render_scene
from narrative.filters import FilterState
from narrative.records import load_story_data
from narrative.scene_class import compute_class_scene
from narrative.scene_demographic import compute_demographic_scene
from narrative.scene_overview import compute_overview_scene
from narrative.scenes import SCENES, AppState, clamp_index


app = FastAPI(title="Titanic Narrative API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: FilterStateModel) -> FilterState:
    return FilterState(**model.model_dump())


def _state_from_model(model: AppStateModel) -> AppState:
    return AppState(
        scene_index=clamp_index(model.scene_index, len(SCENES)),
        filters=_filters_from_model(model.filters),
    )


def _state_to_dict(state: AppState) -> dict:
    return asdict(state)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _failure(endpoint: str, exc: Exception) -> JSONResponse:
    logger.exception("%s failed", endpoint)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/scenes")
def meta_scenes():
    scenes = []
    for index, scene in enumerate(SCENES):
        controller = controller_for(scene)
        scenes.append(
            {
                "index": index,
                "key": scene.key,
                "title": scene.title,
                "controls": controller.describe(FilterState()) if controller is not None else None,
            }
        )
    return _json({"scenes": scenes})


@app.post("/scene")
def scene(state: AppStateModel):
    try:
        records = load_story_data()
        app_state = _state_from_model(state)
        return _json({"state": _state_to_dict(app_state), "output": render_scene(records, app_state)})
    except Exception as exc:
        return _failure("scene", exc)


@app.post("/dispatch")
def dispatch_event(request: DispatchRequest):
    try:
        records = load_story_data()
        event = StoryEvent(kind=request.event.kind.strip().lower(), value=request.event.value)
        new_state, output = dispatch(records, _state_from_model(request.state), event)
        return _json({"state": _state_to_dict(new_state), "output": output})
    except Exception as exc:
        return _failure("dispatch", exc)


@app.get("/overview")
def overview():
    try:
        records = load_story_data()
        return _json(compute_overview_scene(records))
    except Exception as exc:
        return _failure("overview", exc)


@app.post("/class-analysis")
def class_analysis(filters: FilterStateModel):
    try:
        records = load_story_data()
        return _json(compute_class_scene(records, _filters_from_model(filters)))
    except Exception as exc:
        return _failure("class_analysis", exc)


@app.post("/demographics")
def demographics(filters: FilterStateModel):
    try:
        records = load_story_data()
        return _json(compute_demographic_scene(records, _filters_from_model(filters)))
    except Exception as exc:
        return _failure("demographics", exc)


@app.post("/export/{scene_key}")
def export_scene(scene_key: str, filters: FilterStateModel):
    records = load_story_data()
    f = _filters_from_model(filters)

    filename = f"{scene_key}.csv"
    if scene_key == "overview":
        export_df = buckets_frame(global_survival(records))
    elif scene_key in {"class-analysis", "class_analysis"}:
        export_df = buckets_frame(survival_by_class(records, f))
        filename = "class_analysis.csv"
    elif scene_key in {"demographics", "demographic_analysis"}:
        export_df = buckets_frame(survival_by_demographic(records, f))
        filename = "demographics.csv"
    else:
        export_df = pd.DataFrame()

    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
