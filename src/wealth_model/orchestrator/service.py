# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Calculation orchestrator: validation, caching and single-flight execution.

Every request is validated and fingerprinted on the caller's thread (fail
fast). A cached result is returned directly. On a miss the first caller
submits the computation to the worker pool and registers its future; any
concurrent caller with the same fingerprint waits on that same future.
"""

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from ..config import config
from ..errors import InvalidInput
from ..montecarlo.config import MonteCarloConfig
from ..montecarlo.market_assumptions import MarketAssumptions
from ..montecarlo.results import MonteCarloResults
from ..montecarlo.simulator import CancellationToken, MonteCarloSimulator
from ..scenario.inputs import ScenarioInput
from ..scenario.projector import ScenarioProjector
from ..scenario.results import ScenarioResult
from ..tax.rules import Jurisdiction, RulesRepository, TaxYearRules
from .cache import CalculationCache
from .fingerprint import fingerprint

logger = logging.getLogger(__name__)

Result = Union[ScenarioResult, MonteCarloResults]


class ComputationKind(str, Enum):
    SCENARIO = 'scenario'
    MONTE_CARLO = 'monte_carlo'


@dataclass(frozen=True)
class ComputationRequest:
    kind: ComputationKind
    scenario: ScenarioInput
    monte_carlo: Optional[MonteCarloConfig] = None
    market: Optional[MarketAssumptions] = None

    def __post_init__(self):
        object.__setattr__(self, 'kind', ComputationKind(self.kind))


@dataclass(frozen=True)
class ProgressiveResult:
    """A provisional deterministic estimate plus the future of the full result."""
    estimate: ScenarioResult
    future: Future


@dataclass(frozen=True)
class _Prepared:
    request: ComputationRequest
    scenario: ScenarioInput
    rules: TaxYearRules
    fingerprint: str
    simulator: Optional[MonteCarloSimulator] = None


class CalculationOrchestrator:
    """Single entry point for scenario and Monte Carlo computations.

    Example:
        >>> with CalculationOrchestrator(RulesRepository.with_defaults()) as orchestrator:
        ...     result = orchestrator.compute_scenario(scenario)
    """

    def __init__(self, rules_repository: Optional[RulesRepository] = None,
                 market: Optional[MarketAssumptions] = None,
                 max_workers: Optional[int] = None,
                 cache: Optional[CalculationCache] = None):
        self.rules_repository = rules_repository or RulesRepository.with_defaults()
        self.market = market or MarketAssumptions.create_default()
        self.cache = cache or CalculationCache()
        workers = max_workers or config.runtime.get('max_workers') or os.cpu_count() or 1
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix='orchestrator')
        self._inflight: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self._computations = 0
        self._unsubscribe = self.rules_repository.subscribe(self._on_rules_superseded)

    # -- preparation ---------------------------------------------------------

    def _prepare(self, request: ComputationRequest) -> _Prepared:
        """Validate and fingerprint; raises before any work is scheduled."""
        scenario = request.scenario.validate()
        rules = self.rules_repository.get(scenario.jurisdiction, scenario.tax_year)
        if request.kind is ComputationKind.SCENARIO:
            if request.monte_carlo is not None:
                raise InvalidInput('monte_carlo', "not allowed for a scenario computation")
            return _Prepared(request, scenario, rules, fingerprint(request.kind, scenario, rules))

        market = request.market or self.market
        simulator = MonteCarloSimulator(market, request.monte_carlo or MonteCarloConfig())
        scenario = simulator.prepare(scenario, rules)
        fp = fingerprint(request.kind, scenario, rules, simulator.config, market)
        return _Prepared(request, scenario, rules, fp, simulator)

    # -- execution -----------------------------------------------------------

    def _run(self, prepared: _Prepared, progress: Optional[Callable[[float], None]],
             cancel_token: Optional[CancellationToken]) -> Result:
        if prepared.simulator is None:
            return ScenarioProjector(prepared.scenario, prepared.rules,
                                     fingerprint=prepared.fingerprint).run()
        return prepared.simulator.run(prepared.scenario, prepared.rules, progress, cancel_token)

    def _execute(self, prepared: _Prepared, progress, cancel_token) -> Result:
        fp = prepared.fingerprint
        try:
            with self._lock:
                self._computations += 1
            result = self._run(prepared, progress, cancel_token)
            if self._cacheable(result) and self._rules_current(prepared.rules):
                self.cache.put(fp, result, frozenset({(
                    prepared.rules.jurisdiction.value, prepared.rules.tax_year,
                    prepared.rules.version)}))
                # A revision published between the check and the put missed this entry.
                if not self._rules_current(prepared.rules):
                    self.cache.invalidate(fp)
            return result
        finally:
            with self._lock:
                self._inflight.pop(fp, None)

    @staticmethod
    def _cacheable(result: Result) -> bool:
        if isinstance(result, MonteCarloResults):
            return not result.cancelled
        return not result.provisional

    def _rules_current(self, rules: TaxYearRules) -> bool:
        current = self.rules_repository.get(rules.jurisdiction, rules.tax_year)
        return current.version == rules.version

    def submit(self, request: ComputationRequest,
               progress: Optional[Callable[[float], None]] = None,
               cancel_token: Optional[CancellationToken] = None) -> Future:
        """Schedule ``request`` and return a future of its result.

        Raises:
            InvalidInput, UnsupportedJurisdiction, RulesNotFound: Before scheduling
        """
        prepared = self._prepare(request)
        fp = prepared.fingerprint
        with self._lock:
            future = self._inflight.get(fp)
            if future is not None:
                logger.debug("Joining in-flight computation %s", fp[:12])
                return future
            cached = self.cache.get(fp)
            if cached is not None:
                future = Future()
                future.set_result(cached)
                return future
            future = self._pool.submit(self._execute, prepared, progress, cancel_token)
            self._inflight[fp] = future
        return future

    def compute(self, request: ComputationRequest,
                progress: Optional[Callable[[float], None]] = None,
                cancel_token: Optional[CancellationToken] = None) -> Result:
        """Compute ``request``, from the cache when possible, waiting for the result."""
        return self.submit(request, progress, cancel_token).result()

    def compute_scenario(self, scenario: ScenarioInput) -> ScenarioResult:
        return self.compute(ComputationRequest(ComputationKind.SCENARIO, scenario))

    def run_monte_carlo(self, scenario: ScenarioInput,
                        monte_carlo: Optional[MonteCarloConfig] = None,
                        progress: Optional[Callable[[float], None]] = None,
                        cancel_token: Optional[CancellationToken] = None) -> MonteCarloResults:
        request = ComputationRequest(ComputationKind.MONTE_CARLO, scenario, monte_carlo)
        return self.compute(request, progress, cancel_token)

    def compute_progressive(self, request: ComputationRequest,
                            progress: Optional[Callable[[float], None]] = None,
                            cancel_token: Optional[CancellationToken] = None
                            ) -> ProgressiveResult:
        """Quick deterministic estimate now, full result in the background.

        The estimate is tagged ``provisional`` and never cached.
        """
        future = self.submit(request, progress, cancel_token)
        prepared = self._prepare(replace(request, kind=ComputationKind.SCENARIO,
                                         monte_carlo=None, market=None))
        estimate = ScenarioProjector(prepared.scenario, prepared.rules,
                                     fingerprint=prepared.fingerprint).run()
        return ProgressiveResult(replace(estimate, provisional=True), future)

    # -- invalidation --------------------------------------------------------

    def _on_rules_superseded(self, old: TaxYearRules, new: TaxYearRules):
        self.cache.invalidate_dependency(old.jurisdiction.value, old.tax_year,
                                         keep_version=new.version)

    def invalidate(self, jurisdiction: Any, tax_year: int) -> int:
        """Drop every cached result computed with rules for ``jurisdiction``/``tax_year``."""
        return self.cache.invalidate_dependency(Jurisdiction.parse(jurisdiction).value,
                                                int(tax_year))

    def stats(self) -> Dict[str, int]:
        stats = self.cache.stats()
        with self._lock:
            stats['computations'] = self._computations
            stats['in_flight'] = len(self._inflight)
        return stats

    # -- lifecycle -----------------------------------------------------------

    def shutdown(self, wait: bool = True):
        self._unsubscribe()
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> 'CalculationOrchestrator':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
