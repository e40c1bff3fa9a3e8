from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


TRAIN_LINES = ("CCL", "CEL", "CGL", "DTL", "EWL", "NEL", "NSL", "BPL", "SLRT", "PLRT", "TEL")

TrainLine = Literal["CCL", "CEL", "CGL", "DTL", "EWL", "NEL", "NSL", "BPL", "SLRT", "PLRT", "TEL"]


class ToolArgs(BaseModel):
    """Base for tool argument models. Extra keys are dropped; numbers are accepted as strings."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, frozen=True)


class NoArgs(ToolArgs):
    pass


class BusArrivalArgs(ToolArgs):
    busStopCode: str = Field(..., min_length=1, description="The unique 5-digit bus stop code")
    serviceNo: Optional[str] = Field(None, description="Optional bus service number to filter results")


class TrainLineArgs(ToolArgs):
    trainLine: TrainLine = Field(..., description="Code of train network line")
