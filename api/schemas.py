from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class FilterStateModel(BaseModel):
    class_filter: Literal["all", "1", "2", "3"] = "all"
    gender_filter: Literal["all", "male", "female"] = "all"


class AppStateModel(BaseModel):
    scene_index: int = Field(default=0, ge=0)
    filters: FilterStateModel = Field(default_factory=FilterStateModel)


class StoryEventModel(BaseModel):
    kind: str
    value: Optional[Union[int, str]] = None


class DispatchRequest(BaseModel):
    state: AppStateModel = Field(default_factory=AppStateModel)
    event: StoryEventModel
