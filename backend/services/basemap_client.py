"""
Basemap style client: one bearer-authenticated GET for a style document.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

import requests

from domain.models import BasemapDocument
from domain.outcomes import DecodeError, FetchError, FetchOutcome
from services.http_support import http_get, new_session, read_json_response
from settings import settings

logger = logging.getLogger(__name__)

# e.g. "arcgis/outdoor"; no scheme, host, query or dot segments
STYLE_ID_PATTERN = r"^[A-Za-z0-9_-]+(/[A-Za-z0-9_-]+)*$"
STYLE_ID_RE = re.compile(STYLE_ID_PATTERN)


class BasemapClient:
    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        if not api_key:
            raise ValueError("api_key must be a non-empty string")
        self._api_key = api_key
        self.base_url = (base_url or settings.BASEMAP_STYLES_BASE_URL).rstrip("/")
        self.session = session or new_session()
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS

    def style_url(self, style: str) -> str:
        """Style ids only resolve under base_url; the bearer token never leaves that host."""
        if not STYLE_ID_RE.fullmatch(style):
            raise ValueError(f"invalid basemap style id: {style!r}")
        return f"{self.base_url}/{style}"

    def fetch_style(self, style: str) -> FetchOutcome[BasemapDocument]:
        try:
            url = self.style_url(style)
        except ValueError as exc:
            logger.warning("Basemap style rejected: %s", exc)
            return FetchOutcome.failure(FetchError(str(exc)))
        try:
            resp = http_get(
                self.session,
                url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self.timeout,
            )
            payload = read_json_response(resp)
            if not isinstance(payload, dict):
                raise DecodeError(f"basemap style must be a JSON object, got {type(payload).__name__}")
        except FetchError as exc:
            logger.warning("Basemap style %s failed (%s): %s", style, exc.kind, exc)
            return FetchOutcome.failure(exc)

        logger.debug("Basemap style %s loaded (%d top-level keys)", style, len(payload))
        return FetchOutcome.success(BasemapDocument(style=style, data=payload))
