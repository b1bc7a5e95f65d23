"""Pydantic models for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from filters import FilterKey
from location import PermissionStatus


class CoordinateModel(BaseModel):
    lat: float
    lng: float


class ResultItemModel(BaseModel):
    id: str
    name: str
    vicinity: str | None = None
    distance_m: int
    distance_label: str
    compass: str


class StateResponse(BaseModel):
    phase: str
    coordinate: CoordinateModel | None = None
    coordinate_updated_at: datetime | None = None
    address: str
    stale: bool
    loading: bool
    error: str | None = None
    filter: FilterKey
    title: str
    results: list[ResultItemModel]


class ActivateRequest(BaseModel):
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)
    permission: PermissionStatus = PermissionStatus.GRANTED


class FilterRequest(BaseModel):
    filter: str


class ShareResponse(BaseModel):
    text: str
    map_url: str


class DialResponse(BaseModel):
    number: str
    uri: str
