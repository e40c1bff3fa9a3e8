from __future__ import annotations

"""Static tool catalog: descriptors plus the upstream endpoint each tool is bound to.

Adding a tool is a new ToolBinding entry here; dispatch code does not change.
"""

import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple, Type

from mcp import types

from .schemas import TRAIN_LINES, BusArrivalArgs, NoArgs, ToolArgs, TrainLineArgs


_TRAIN_LINE_PROPERTY: Dict[str, Any] = {
    "type": "string",
    "description": f"Code of train network line ({', '.join(TRAIN_LINES)})",
    "enum": list(TRAIN_LINES),
}

_NO_PARAMS_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}}


@dataclass(frozen=True)
class ToolBinding:
    name: str
    description: str
    path: str
    input_schema: Mapping[str, Any]
    args_model: Type[ToolArgs] = NoArgs
    # argument name -> forwarded query parameter name
    query_params: Mapping[str, str] = field(default_factory=dict)

    def descriptor(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=copy.deepcopy(dict(self.input_schema)),
        )


TOOL_BINDINGS: Tuple[ToolBinding, ...] = (
    ToolBinding(
        name="bus_arrival",
        description=(
            "Get real-time bus arrival information for a specific bus stop and optionally a specific "
            "service number. Returns estimated arrival times, bus locations, and crowding levels."
        ),
        path="v3/BusArrival",
        input_schema={
            "type": "object",
            "properties": {
                "busStopCode": {"type": "string", "description": "The unique 5-digit bus stop code"},
                "serviceNo": {"type": "string", "description": "Optional bus service number to filter results"},
            },
            "required": ["busStopCode"],
        },
        args_model=BusArrivalArgs,
        query_params={"busStopCode": "BusStopCode", "serviceNo": "ServiceNo"},
    ),
    ToolBinding(
        name="station_crowding",
        description=(
            "Get real-time MRT/LRT station crowdedness level for a particular train network line. "
            "Updates every 10 minutes."
        ),
        path="PCDRealTime",
        input_schema={
            "type": "object",
            "properties": {"trainLine": _TRAIN_LINE_PROPERTY},
            "required": ["trainLine"],
        },
        args_model=TrainLineArgs,
        query_params={"trainLine": "TrainLine"},
    ),
    ToolBinding(
        name="train_alerts",
        description=(
            "Get real-time train service alerts including service disruptions and shuttle services. "
            "Updates when there are changes."
        ),
        path="TrainServiceAlerts",
        input_schema=_NO_PARAMS_SCHEMA,
    ),
    ToolBinding(
        name="carpark_availability",
        description="Get real-time availability of parking lots for HDB, LTA, and URA carparks. Updates every minute.",
        path="CarParkAvailabilityv2",
        input_schema=_NO_PARAMS_SCHEMA,
    ),
    ToolBinding(
        name="travel_times",
        description="Get estimated travel times on expressway segments. Updates every 5 minutes.",
        path="EstTravelTimes",
        input_schema=_NO_PARAMS_SCHEMA,
    ),
    ToolBinding(
        name="traffic_incidents",
        description=(
            "Get current road incidents including accidents, roadworks, and heavy traffic. "
            "Updates every 2 minutes."
        ),
        path="TrafficIncidents",
        input_schema=_NO_PARAMS_SCHEMA,
    ),
    ToolBinding(
        name="station_crowd_forecast",
        description="Get forecasted MRT/LRT station crowdedness levels in 30-minute intervals.",
        path="PCDForecast",
        input_schema={
            "type": "object",
            "properties": {"trainLine": _TRAIN_LINE_PROPERTY},
            "required": ["trainLine"],
        },
        args_model=TrainLineArgs,
        query_params={"trainLine": "TrainLine"},
    ),
)

BINDINGS_BY_NAME: Mapping[str, ToolBinding] = MappingProxyType({b.name: b for b in TOOL_BINDINGS})


def list_tool_descriptors() -> list[types.Tool]:
    """Fresh descriptor objects in catalog order; callers may mutate them freely."""
    return [b.descriptor() for b in TOOL_BINDINGS]
