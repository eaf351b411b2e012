import os

# Basic settings helper to read environment configuration.

DEFAULT_PLACES_BASE_URL = "https://places-api.arcgis.com/arcgis/rest/services/places-service/v1"
DEFAULT_BASEMAP_STYLES_BASE_URL = "https://basemapstyles-api.arcgis.com/arcgis/rest/services/styles/v2/webmaps"
DEFAULT_SYMBOL_STYLE_URL_TEMPLATE = "https://cdn.arcgis.com/sharing/rest/content/styles/{style}/root.json"


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    return float(val)


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    return int(val)


class Settings:
    def __init__(self) -> None:
        # Credential shared by the places and basemap endpoints; never logged.
        self.ARCGIS_API_KEY: str | None = os.getenv("ARCGIS_API_KEY") or None
        self.PLACES_BASE_URL: str = os.getenv("PLACES_BASE_URL", DEFAULT_PLACES_BASE_URL)
        self.BASEMAP_STYLES_BASE_URL: str = os.getenv("BASEMAP_STYLES_BASE_URL", DEFAULT_BASEMAP_STYLES_BASE_URL)
        self.BASEMAP_STYLE: str = os.getenv("BASEMAP_STYLE", "arcgis/outdoor")
        self.SYMBOL_STYLE_URL_TEMPLATE: str = os.getenv("SYMBOL_STYLE_URL_TEMPLATE", DEFAULT_SYMBOL_STYLE_URL_TEMPLATE)
        self.SYMBOL_STYLE_NAME: str = os.getenv("SYMBOL_STYLE_NAME", "Esri2DPointSymbolsStyle")
        self.SYMBOL_NAME: str = os.getenv("SYMBOL_NAME", "park")
        self.HTTP_TIMEOUT_SECONDS: float = _as_float(os.getenv("HTTP_TIMEOUT_SECONDS"), 10.0)
        self.PIPELINE_TIMEOUT_SECONDS: float = _as_float(os.getenv("PIPELINE_TIMEOUT_SECONDS"), 30.0)
        self.RECENTER_SCALE: float = _as_float(os.getenv("RECENTER_SCALE"), 30000.0)
        self.PIPELINE_MAX_WORKERS: int = _as_int(os.getenv("PIPELINE_MAX_WORKERS"), 3)


settings = Settings()
