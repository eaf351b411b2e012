"""
Core domain models for the places pipeline.
These are framework-agnostic and shared by the clients, the aggregator and the renderer.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class TrackStatus(str, Enum):
    """Status of one track in a pipeline run."""
    PENDING = "pending"
    APPLIED = "applied"  # basemap handed to the renderer
    READY = "ready"  # places / symbol cached for the join
    FAILED = "failed"


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 point: x is longitude, y is latitude."""
    x: float
    y: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError(f"coordinate must be finite, got ({self.x}, {self.y})")
        if not -180.0 <= self.x <= 180.0:
            raise ValueError(f"longitude out of range: {self.x}")
        if not -90.0 <= self.y <= 90.0:
            raise ValueError(f"latitude out of range: {self.y}")


@dataclass(frozen=True)
class PlaceLocation:
    x: float
    y: float


@dataclass(frozen=True)
class Category:
    category_id: int
    label: str


@dataclass(frozen=True)
class Place:
    place_id: str
    location: PlaceLocation
    categories: Tuple[Category, ...]
    name: str


@dataclass(frozen=True)
class Pagination:
    previous_url: Optional[str] = None
    next_url: Optional[str] = None


@dataclass(frozen=True)
class PlaceResult:
    """Decoded places response. An empty `results` is a valid, reportable outcome."""
    results: Tuple[Place, ...] = ()
    pagination: Optional[Pagination] = None

    @property
    def is_empty(self) -> bool:
        return not self.results


@dataclass(frozen=True)
class ApiErrorInfo:
    """Error payload returned by a service (`{"error": {"code": ..., "details": ...}}`)."""
    status_code: Union[int, str]
    details: str = ""

    def __str__(self) -> str:
        return f"{self.status_code} {self.details}".strip()


@dataclass(frozen=True)
class BasemapDocument:
    """Basemap style JSON; opaque to everything except the renderer."""
    style: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SymbolHandle:
    style_name: str
    name: str
    cim_ref: Optional[str] = None
    thumbnail_url: Optional[str] = None
    dimensionality: Optional[str] = None


@dataclass(frozen=True)
class NearPointQuery:
    """Input for a "places near point" search."""
    search_text: str
    center: Coordinate
    radius_m: float
    category_ids: Tuple[str, ...] = ()
    page_size: Optional[int] = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.radius_m) or self.radius_m <= 0:
            raise ValueError(f"radius must be > 0, got {self.radius_m}")
        if self.page_size is not None and self.page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {self.page_size}")
