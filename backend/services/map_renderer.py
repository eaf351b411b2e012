"""
Renderer boundary for the places pipeline.

`Renderer` is the narrow interface the aggregator drives. `SceneRenderer`
records those commands into a MapScene that presentation layers (the HTTP
API, a desktop map view) can draw from; it does no drawing itself.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Protocol

from domain.models import BasemapDocument, SymbolHandle

logger = logging.getLogger(__name__)

NAME_ATTRIBUTE = "Name"


class Renderer(Protocol):
    def apply_basemap(self, document: BasemapDocument) -> None: ...

    def add_graphic(self, coordinate: Any, label_attributes: Dict[str, str]) -> None: ...

    def set_shared_symbol(self, symbol: SymbolHandle) -> None: ...

    def recenter(self, coordinate: Any, scale: float) -> None: ...

    def show_error(self, message: str) -> None: ...

    def show_info(self, message: str) -> None: ...


@dataclass(frozen=True)
class LabelDefinition:
    """Label placed next to each graphic, read from its `Name` attribute."""
    expression: str = f"[{NAME_ATTRIBUTE}]"
    font_size: float = 10
    color: str = "darkgreen"
    horizontal_alignment: str = "left"
    vertical_alignment: str = "top"


@dataclass(frozen=True)
class SceneGraphic:
    x: float
    y: float
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Viewpoint:
    x: float
    y: float
    scale: float


@dataclass(frozen=True)
class StatusMessage:
    level: str  # "error" or "info"
    message: str


@dataclass
class MapScene:
    basemap: Optional[BasemapDocument] = None
    shared_symbol: Optional[SymbolHandle] = None
    graphics: List[SceneGraphic] = field(default_factory=list)
    viewpoint: Optional[Viewpoint] = None
    messages: List[StatusMessage] = field(default_factory=list)
    label_definition: LabelDefinition = field(default_factory=LabelDefinition)

    @property
    def errors(self) -> List[str]:
        return [m.message for m in self.messages if m.level == "error"]

    @property
    def infos(self) -> List[str]:
        return [m.message for m in self.messages if m.level == "info"]


class SceneRenderer:
    """Thread-safe Renderer that records commands into a MapScene."""

    def __init__(self, label_definition: Optional[LabelDefinition] = None):
        self._scene = MapScene(label_definition=label_definition or LabelDefinition())
        self._lock = threading.Lock()

    def apply_basemap(self, document: BasemapDocument) -> None:
        with self._lock:
            self._scene.basemap = document

    def add_graphic(self, coordinate: Any, label_attributes: Dict[str, str]) -> None:
        graphic = SceneGraphic(x=coordinate.x, y=coordinate.y, attributes=dict(label_attributes))
        with self._lock:
            self._scene.graphics.append(graphic)

    def set_shared_symbol(self, symbol: SymbolHandle) -> None:
        with self._lock:
            self._scene.shared_symbol = symbol

    def recenter(self, coordinate: Any, scale: float) -> None:
        with self._lock:
            self._scene.viewpoint = Viewpoint(x=coordinate.x, y=coordinate.y, scale=scale)

    def show_error(self, message: str) -> None:
        logger.warning("Map error: %s", message)
        with self._lock:
            self._scene.messages.append(StatusMessage(level="error", message=message))

    def show_info(self, message: str) -> None:
        logger.info("Map info: %s", message)
        with self._lock:
            self._scene.messages.append(StatusMessage(level="info", message=message))

    def snapshot(self) -> MapScene:
        """Copy of the scene, safe to read while tracks are still reporting."""
        with self._lock:
            return replace(
                self._scene,
                graphics=list(self._scene.graphics),
                messages=list(self._scene.messages),
            )
