"""
Resolve a named symbol (e.g. "park") from a web style library.

A style library is a `root.json` document listing symbol items. Loading it is
a precondition of the lookup and fails separately: a library that cannot be
loaded is a StyleLoadError, a loaded library without the symbol is a
SymbolNotFoundError.
"""
from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urljoin

import requests

from domain.models import SymbolHandle
from domain.outcomes import FetchError, FetchOutcome, StyleLoadError, SymbolNotFoundError
from services.http_support import http_get, new_session, read_json_response
from settings import settings

logger = logging.getLogger(__name__)

STYLE_NAME_PATTERN = r"^[A-Za-z0-9_-]+$"
STYLE_NAME_RE = re.compile(STYLE_NAME_PATTERN)


@dataclass(frozen=True)
class SymbolStyleLibrary:
    name: str
    url: str
    items: Tuple[Dict[str, Any], ...]

    def find(self, symbol_name: str) -> Optional[Dict[str, Any]]:
        """Match on item `name` or `key`, ignoring case."""
        wanted = symbol_name.strip().lower()
        for item in self.items:
            for field_name in ("name", "key"):
                value = item.get(field_name)
                if isinstance(value, str) and value.strip().lower() == wanted:
                    return item
        return None


class SymbolResolver:
    def __init__(
        self,
        url_template: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        api_key: Optional[str] = None,
    ):
        self.url_template = url_template or settings.SYMBOL_STYLE_URL_TEMPLATE
        self.session = session or new_session()
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self._api_key = api_key
        self._libraries: Dict[str, SymbolStyleLibrary] = {}
        self._lock = threading.Lock()

    def library_url(self, style_name: str) -> str:
        if not STYLE_NAME_RE.fullmatch(style_name):
            raise ValueError(f"invalid style name: {style_name!r}")
        return self.url_template.format(style=style_name)

    def load_library(self, style_name: str) -> SymbolStyleLibrary:
        """Fetch and cache a style library. Only successful loads are cached."""
        with self._lock:
            cached = self._libraries.get(style_name)
        if cached is not None:
            return cached

        try:
            url = self.library_url(style_name)
        except ValueError as exc:
            raise StyleLoadError(style_name, str(exc)) from exc
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else None
        try:
            resp = http_get(self.session, url, headers=headers, timeout=self.timeout)
            payload = read_json_response(resp)
        except FetchError as exc:
            raise StyleLoadError(style_name, str(exc)) from exc

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise StyleLoadError(style_name, "no symbol items in style document")

        library = SymbolStyleLibrary(
            name=style_name,
            url=url,
            items=tuple(item for item in items if isinstance(item, dict)),
        )
        with self._lock:
            self._libraries.setdefault(style_name, library)
        logger.debug("Symbol style %s loaded with %d items", style_name, len(library.items))
        return library

    def _handle_for(self, library: SymbolStyleLibrary, symbol_name: str, item: Dict[str, Any]) -> SymbolHandle:
        cim_ref = item.get("cimRef")
        thumbnail = item.get("thumbnail")
        if isinstance(thumbnail, dict):
            thumbnail = thumbnail.get("href")
        return SymbolHandle(
            style_name=library.name,
            name=str(item.get("name") or symbol_name),
            cim_ref=urljoin(library.url, cim_ref) if cim_ref else None,
            thumbnail_url=urljoin(library.url, thumbnail) if thumbnail else None,
            dimensionality=item.get("dimensionality"),
        )

    def resolve(self, style_name: str, symbol_name: str) -> FetchOutcome[SymbolHandle]:
        try:
            library = self.load_library(style_name)
            item = library.find(symbol_name)
            if item is None:
                raise SymbolNotFoundError(style_name, symbol_name)
        except FetchError as exc:
            logger.warning("Symbol %r from %s failed (%s): %s", symbol_name, style_name, exc.kind, exc)
            return FetchOutcome.failure(exc)
        return FetchOutcome.success(self._handle_for(library, symbol_name, item))
