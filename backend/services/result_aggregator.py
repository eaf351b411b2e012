"""
Orchestration core: run the basemap, places and symbol tracks concurrently
and turn their outcomes into renderer calls.

Track A (basemap) reports to the renderer as soon as it resolves. Tracks B
(places) and C (symbol) only cache their outcomes; whichever of them
resolves second triggers the join, which is evaluated exactly once per run
under the run's lock.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Tuple

from domain.models import NearPointQuery, Place, SymbolHandle, TrackStatus
from domain.outcomes import FetchError, FetchOutcome
from services.basemap_client import BasemapClient
from services.map_renderer import NAME_ATTRIBUTE, Renderer
from services.places_client import PlaceSearchClient
from services.symbol_resolver import SymbolResolver
from settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "no results"

STAGE_BASEMAP = "basemap"
STAGE_PLACES = "places search"
STAGE_SYMBOL = "symbol"


def format_failure(stage: str, error: FetchError) -> str:
    """One-line, user-facing status naming the failing stage."""
    return f"{stage} failed: {error.message}"


@dataclass(frozen=True)
class JoinDecision:
    symbol: Optional[SymbolHandle] = None
    places: Tuple[Place, ...] = ()
    errors: Tuple[str, ...] = ()
    info: Optional[str] = None

    @property
    def renders(self) -> bool:
        """True when there are graphics to add (symbol resolved and places found)."""
        return self.symbol is not None and bool(self.places)


def evaluate_join(
    places_outcome: FetchOutcome,
    symbol_outcome: FetchOutcome,
) -> JoinDecision:
    """
    Combine the places and symbol outcomes into one rendering decision.

    Each failed track reports its own error. An empty (successful) places
    result is reported as information regardless of the symbol track.
    When both tracks succeeded the symbol is carried even for an empty
    result; graphics need places as well.
    """
    errors = []
    info = None
    if not places_outcome.ok:
        errors.append(format_failure(STAGE_PLACES, places_outcome.error))
    elif places_outcome.value.is_empty:
        info = NO_RESULTS_MESSAGE
    if not symbol_outcome.ok:
        errors.append(format_failure(STAGE_SYMBOL, symbol_outcome.error))

    if errors:
        return JoinDecision(errors=tuple(errors), info=info)
    return JoinDecision(
        symbol=symbol_outcome.value,
        places=places_outcome.value.results,
        info=info,
    )


@dataclass
class RunState:
    basemap: TrackStatus = TrackStatus.PENDING
    places: TrackStatus = TrackStatus.PENDING
    symbol: TrackStatus = TrackStatus.PENDING
    joined: bool = False


class PipelineRun:
    """One run of the three tracks against a renderer."""

    TRACK_COUNT = 3

    def __init__(self, query: NearPointQuery, renderer: Renderer, recenter_scale: float):
        self.query = query
        self.recenter_scale = recenter_scale
        self.futures: Dict[str, Future] = {}
        self._renderer = renderer
        self._lock = threading.Lock()
        self._state = RunState()
        self._places_outcome: Optional[FetchOutcome] = None
        self._symbol_outcome: Optional[FetchOutcome] = None
        self._join_decision: Optional[JoinDecision] = None
        self._pending = self.TRACK_COUNT
        self._finished = threading.Event()

    @property
    def state(self) -> RunState:
        with self._lock:
            return replace(self._state)

    @property
    def join_decision(self) -> Optional[JoinDecision]:
        with self._lock:
            return self._join_decision

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every track handler has finished; False on timeout."""
        return self._finished.wait(timeout)

    def _track_finished(self) -> None:
        with self._lock:
            self._pending -= 1
            if self._pending == 0:
                self._finished.set()

    def on_basemap(self, outcome: FetchOutcome) -> None:
        with self._lock:
            self._state.basemap = TrackStatus.APPLIED if outcome.ok else TrackStatus.FAILED
        if outcome.ok:
            self._renderer.apply_basemap(outcome.value)
        else:
            self._renderer.show_error(format_failure(STAGE_BASEMAP, outcome.error))

    def on_places(self, outcome: FetchOutcome) -> None:
        self._cache_for_join(places=outcome)

    def on_symbol(self, outcome: FetchOutcome) -> None:
        self._cache_for_join(symbol=outcome)

    def _cache_for_join(
        self,
        places: Optional[FetchOutcome] = None,
        symbol: Optional[FetchOutcome] = None,
    ) -> None:
        with self._lock:
            if places is not None:
                self._places_outcome = places
                self._state.places = TrackStatus.READY if places.ok else TrackStatus.FAILED
            if symbol is not None:
                self._symbol_outcome = symbol
                self._state.symbol = TrackStatus.READY if symbol.ok else TrackStatus.FAILED
            if self._state.joined or self._places_outcome is None or self._symbol_outcome is None:
                return
            self._state.joined = True
            decision = evaluate_join(self._places_outcome, self._symbol_outcome)
            self._join_decision = decision

        self._apply_join(decision)

    def _apply_join(self, decision: JoinDecision) -> None:
        for message in decision.errors:
            self._renderer.show_error(message)
        if decision.info:
            self._renderer.show_info(decision.info)
        if decision.symbol is not None:
            self._renderer.set_shared_symbol(decision.symbol)
        if not decision.renders:
            return

        for place in decision.places:
            self._renderer.add_graphic(place.location, {NAME_ATTRIBUTE: place.name})
        self._renderer.recenter(self.query.center, self.recenter_scale)
        logger.info(
            "Rendered %d places for %r with symbol %s",
            len(decision.places),
            self.query.search_text,
            decision.symbol.name,
        )


class ResultAggregator:
    def __init__(
        self,
        places_client: PlaceSearchClient,
        basemap_client: BasemapClient,
        symbol_resolver: SymbolResolver,
        renderer: Renderer,
        executor: Optional[ThreadPoolExecutor] = None,
        recenter_scale: Optional[float] = None,
        max_workers: Optional[int] = None,
    ):
        self.places_client = places_client
        self.basemap_client = basemap_client
        self.symbol_resolver = symbol_resolver
        self.renderer = renderer
        self.recenter_scale = recenter_scale if recenter_scale is not None else default_settings.RECENTER_SCALE
        self._owns_executor = executor is None
        # fewer than three workers would queue a track behind another
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(max_workers or PipelineRun.TRACK_COUNT, PipelineRun.TRACK_COUNT),
            thread_name_prefix="places-pipeline",
        )

    def __enter__(self) -> "ResultAggregator":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def close(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def _run_track(
        self,
        run: PipelineRun,
        stage: str,
        fetch: Callable[[], FetchOutcome],
        handler: Callable[[FetchOutcome], None],
    ) -> None:
        try:
            try:
                outcome = fetch()
            except Exception as exc:
                logger.exception("Track %s raised instead of returning an outcome", stage)
                outcome = FetchOutcome.failure(FetchError(f"unexpected error: {exc}"))
            try:
                handler(outcome)
            except Exception:
                logger.exception("Track %s handler failed", stage)
        finally:
            run._track_finished()

    def start(
        self,
        query: NearPointQuery,
        basemap_style: str,
        symbol_style: str,
        symbol_name: str,
    ) -> PipelineRun:
        """Start all three tracks and return immediately."""
        run = PipelineRun(query, self.renderer, self.recenter_scale)
        tracks = (
            (STAGE_BASEMAP, lambda: self.basemap_client.fetch_style(basemap_style), run.on_basemap),
            (STAGE_PLACES, lambda: self.places_client.search_near_point(query), run.on_places),
            (STAGE_SYMBOL, lambda: self.symbol_resolver.resolve(symbol_style, symbol_name), run.on_symbol),
        )
        for stage, fetch, handler in tracks:
            run.futures[stage] = self._executor.submit(self._run_track, run, stage, fetch, handler)
        logger.debug(
            "Pipeline started: search=%r style=%s symbol=%s/%s",
            query.search_text,
            basemap_style,
            symbol_style,
            symbol_name,
        )
        return run


@dataclass(frozen=True)
class PipelineClients:
    places: PlaceSearchClient
    basemap: BasemapClient
    symbols: SymbolResolver


_default_clients: Dict[str, PipelineClients] = {}
_default_clients_lock = threading.Lock()


def get_default_clients(api_key: str, config: Optional[Settings] = None) -> PipelineClients:
    """
    Lazily build the three clients once per credential and reuse them, so
    their sessions and the symbol-library cache outlive a single run.
    """
    cfg = config or default_settings
    with _default_clients_lock:
        clients = _default_clients.get(api_key)
        if clients is None:
            clients = PipelineClients(
                places=PlaceSearchClient(
                    api_key,
                    base_url=cfg.PLACES_BASE_URL,
                    timeout=cfg.HTTP_TIMEOUT_SECONDS,
                ),
                basemap=BasemapClient(
                    api_key,
                    base_url=cfg.BASEMAP_STYLES_BASE_URL,
                    timeout=cfg.HTTP_TIMEOUT_SECONDS,
                ),
                symbols=SymbolResolver(
                    url_template=cfg.SYMBOL_STYLE_URL_TEMPLATE,
                    timeout=cfg.HTTP_TIMEOUT_SECONDS,
                    api_key=api_key,
                ),
            )
            _default_clients[api_key] = clients
        return clients


def build_aggregator(
    renderer: Renderer,
    api_key: str,
    config: Optional[Settings] = None,
    executor: Optional[ThreadPoolExecutor] = None,
) -> ResultAggregator:
    """Wire the shared clients to a renderer. The credential goes to every endpoint."""
    cfg = config or default_settings
    clients = get_default_clients(api_key, cfg)
    return ResultAggregator(
        places_client=clients.places,
        basemap_client=clients.basemap,
        symbol_resolver=clients.symbols,
        renderer=renderer,
        executor=executor,
        recenter_scale=cfg.RECENTER_SCALE,
        max_workers=cfg.PIPELINE_MAX_WORKERS,
    )
