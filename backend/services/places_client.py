"""
Places "near point" search client.

Issues one GET against the places service and decodes the body into the
typed records in domain.models. Every call resolves to a FetchOutcome.
"""
from __future__ import annotations

import logging
import math
from typing import Any, List, Optional

import requests

from domain.models import (
    Category,
    NearPointQuery,
    Pagination,
    Place,
    PlaceLocation,
    PlaceResult,
)
from domain.outcomes import DecodeError, FetchError, FetchOutcome
from services.http_support import http_get, new_session, read_json_response
from settings import settings

NEAR_POINT_PATH = "places/near-point"
RESPONSE_FORMAT = "json"


def _as_float(value: Any, field_name: str) -> float:
    # bool is an int subclass; a boolean coordinate is a schema error
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{field_name} must be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError as exc:
        raise DecodeError(f"{field_name} is out of range: {value!r}") from exc
    if not math.isfinite(number):
        raise DecodeError(f"{field_name} must be finite, got {value!r}")
    return number


def _as_int(value: Any, field_name: str) -> int:
    """Whole numbers only: 16032, 16032.0 and "16032" decode, 3.7 and NaN do not."""
    if isinstance(value, bool):
        raise DecodeError(f"{field_name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise DecodeError(f"{field_name} must be an integer, got {value!r}")
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise DecodeError(f"{field_name} must be an integer, got {value!r}") from exc
    raise DecodeError(f"{field_name} must be an integer, got {value!r}")


def _decode_category(item: Any) -> Category:
    if not isinstance(item, dict):
        raise DecodeError(f"category must be an object, got {item!r}")
    return Category(
        category_id=_as_int(item.get("categoryId"), "categoryId"),
        label=str(item.get("label") or ""),
    )


def _decode_place(item: Any) -> Place:
    if not isinstance(item, dict):
        raise DecodeError(f"place must be an object, got {item!r}")
    location = item.get("location")
    if not isinstance(location, dict):
        raise DecodeError(f"place {item.get('placeId')!r} has no location")
    categories = item.get("categories") or []
    if not isinstance(categories, list):
        raise DecodeError("categories must be a list")
    return Place(
        place_id=str(item.get("placeId") or ""),
        location=PlaceLocation(
            x=_as_float(location.get("x"), "location.x"),
            y=_as_float(location.get("y"), "location.y"),
        ),
        categories=tuple(_decode_category(c) for c in categories),
        name=str(item.get("name") or ""),
    )


def _decode_pagination(raw: Any) -> Optional[Pagination]:
    if not isinstance(raw, dict):
        return None
    return Pagination(
        previous_url=raw.get("previousUrl") or None,
        next_url=raw.get("nextUrl") or None,
    )


def decode_place_result(payload: Any) -> PlaceResult:
    """
    Decode a successful places payload.

    A missing `results` field is an empty result; anything that is not the
    expected shape raises DecodeError rather than degrading to empty.
    """
    if not isinstance(payload, dict):
        raise DecodeError(f"expected a JSON object, got {type(payload).__name__}")
    raw_results = payload.get("results")
    if raw_results is None:
        raw_results = []
    if not isinstance(raw_results, list):
        raise DecodeError("results must be a list")
    places: List[Place] = [_decode_place(item) for item in raw_results]
    return PlaceResult(results=tuple(places), pagination=_decode_pagination(payload.get("pagination")))


def _decode_checked(payload: Any) -> PlaceResult:
    try:
        return decode_place_result(payload)
    except (TypeError, ValueError, OverflowError) as exc:
        raise DecodeError(f"unexpected places payload: {exc}") from exc


class PlaceSearchClient:
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
        self.base_url = (base_url or settings.PLACES_BASE_URL).rstrip("/")
        self.session = session or new_session()
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.logger = logging.getLogger(__name__)

    def _params(self, query: NearPointQuery) -> dict:
        params = {
            "searchText": query.search_text,
            "x": query.center.x,
            "y": query.center.y,
            "radius": query.radius_m,
            "f": RESPONSE_FORMAT,
            "token": self._api_key,
        }
        if query.category_ids:
            params["categoryIds"] = ",".join(query.category_ids)
        if query.page_size is not None:
            params["pageSize"] = query.page_size
        return params

    def search_near_point(self, query: NearPointQuery) -> FetchOutcome[PlaceResult]:
        try:
            resp = http_get(
                self.session,
                f"{self.base_url}/{NEAR_POINT_PATH}",
                params=self._params(query),
                timeout=self.timeout,
            )
            result = _decode_checked(read_json_response(resp))
        except FetchError as exc:
            self.logger.warning(
                "PlaceSearchClient.search_near_point: search=%r x=%.6f y=%.6f failed (%s): %s",
                query.search_text,
                query.center.x,
                query.center.y,
                exc.kind,
                exc,
            )
            return FetchOutcome.failure(exc)

        self.logger.debug(
            "PlaceSearchClient.search_near_point: search=%r x=%.6f y=%.6f radius_m=%.1f got %d results",
            query.search_text,
            query.center.x,
            query.center.y,
            query.radius_m,
            len(result.results),
        )
        return FetchOutcome.success(result)
