"""
Places API routes.

Runs one pipeline (basemap, places search, symbol) and returns the map scene
the renderer recorded.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from domain.models import Coordinate, NearPointQuery
from services.basemap_client import STYLE_ID_PATTERN
from services.map_renderer import MapScene, SceneRenderer
from services.result_aggregator import RunState, build_aggregator
from services.symbol_resolver import STYLE_NAME_PATTERN
from settings import settings

router = APIRouter()
logger = logging.getLogger(__name__)

DEFAULT_SEARCH_TEXT = "garden"
DEFAULT_X = -3.19551
DEFAULT_Y = 55.94417
DEFAULT_RADIUS_M = 1000.0


class GraphicResponse(BaseModel):
    x: float
    y: float
    attributes: Dict[str, str]


class SymbolResponse(BaseModel):
    style_name: str
    name: str
    cim_ref: str | None = None
    thumbnail_url: str | None = None


class ViewpointResponse(BaseModel):
    x: float
    y: float
    scale: float


class LabelDefinitionResponse(BaseModel):
    expression: str
    font_size: float
    color: str
    horizontal_alignment: str
    vertical_alignment: str


class TrackStateResponse(BaseModel):
    basemap: str
    places: str
    symbol: str
    joined: bool


class SceneResponse(BaseModel):
    completed: bool
    basemap_style: str | None = None
    basemap: dict | None = None
    shared_symbol: SymbolResponse | None = None
    graphics: List[GraphicResponse]
    viewpoint: ViewpointResponse | None = None
    label_definition: LabelDefinitionResponse
    errors: List[str]
    infos: List[str]
    tracks: TrackStateResponse


def _scene_response(scene: MapScene, state: RunState, completed: bool) -> SceneResponse:
    symbol = scene.shared_symbol
    viewpoint = scene.viewpoint
    label = scene.label_definition
    return SceneResponse(
        completed=completed,
        basemap_style=scene.basemap.style if scene.basemap else None,
        basemap=scene.basemap.data if scene.basemap else None,
        shared_symbol=SymbolResponse(
            style_name=symbol.style_name,
            name=symbol.name,
            cim_ref=symbol.cim_ref,
            thumbnail_url=symbol.thumbnail_url,
        ) if symbol else None,
        graphics=[GraphicResponse(x=g.x, y=g.y, attributes=g.attributes) for g in scene.graphics],
        viewpoint=ViewpointResponse(x=viewpoint.x, y=viewpoint.y, scale=viewpoint.scale) if viewpoint else None,
        label_definition=LabelDefinitionResponse(
            expression=label.expression,
            font_size=label.font_size,
            color=label.color,
            horizontal_alignment=label.horizontal_alignment,
            vertical_alignment=label.vertical_alignment,
        ),
        errors=scene.errors,
        infos=scene.infos,
        tracks=TrackStateResponse(
            basemap=state.basemap.value,
            places=state.places.value,
            symbol=state.symbol.value,
            joined=state.joined,
        ),
    )


@router.get("/near-point", response_model=SceneResponse)
def places_near_point(
    searchText: str = Query(DEFAULT_SEARCH_TEXT),
    x: float = Query(DEFAULT_X, ge=-180.0, le=180.0),
    y: float = Query(DEFAULT_Y, ge=-90.0, le=90.0),
    radius: float = Query(DEFAULT_RADIUS_M, gt=0),
    style: Optional[str] = Query(None, pattern=STYLE_ID_PATTERN),
    symbol: Optional[str] = None,
    symbolStyle: Optional[str] = Query(None, pattern=STYLE_NAME_PATTERN),
):
    """
    Search places near a point and return the rendered scene.

    The basemap, places and symbol requests run concurrently; each failing
    stage is reported in `errors` without hiding the others' results.
    """
    api_key = settings.ARCGIS_API_KEY
    if not api_key:
        raise HTTPException(status_code=503, detail="ARCGIS_API_KEY is not configured")

    query = NearPointQuery(search_text=searchText, center=Coordinate(x=x, y=y), radius_m=radius)
    renderer = SceneRenderer()
    aggregator = build_aggregator(renderer, api_key, settings)
    try:
        run = aggregator.start(
            query,
            basemap_style=style or settings.BASEMAP_STYLE,
            symbol_style=symbolStyle or settings.SYMBOL_STYLE_NAME,
            symbol_name=symbol or settings.SYMBOL_NAME,
        )
        completed = run.wait(settings.PIPELINE_TIMEOUT_SECONDS)
    finally:
        aggregator.close(wait=False)

    if not completed:
        logger.warning(
            "Pipeline for %r did not finish within %.1fs; returning partial scene",
            searchText,
            settings.PIPELINE_TIMEOUT_SECONDS,
        )
    return _scene_response(renderer.snapshot(), run.state, completed)
