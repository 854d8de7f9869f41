# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Monte Carlo simulation orchestrator.

This module provides the MonteCarloSimulator class which runs many
independent projections of one scenario with sampled asset returns and
reduces them to percentile bands and risk measures.
"""

import logging
import os
import threading
import time
from concurrent.futures import (
    FIRST_COMPLETED,
    Executor,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..config import config as settings
from ..errors import InvalidInput, ScenarioCalculationError, SimulationCancelled
from ..money import Money
from ..scenario.inputs import ScenarioInput
from ..scenario.projector import ScenarioProjector
from ..scenario.results import ScenarioResult
from ..tax.rules import TaxYearRules
from .config import MonteCarloConfig
from .market_assumptions import MarketAssumptions
from .results import IterationFailure, MonteCarloResults
from .return_generator import BoxMullerReturnGenerator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

# Batches run at most this long between cancellation checks on the waiting side.
_POLL_SECONDS = 0.05


class CancellationToken:
    """Cooperative cancellation signal for a Monte Carlo run."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


@dataclass(frozen=True)
class BatchOutcome:
    paths: Dict[int, Tuple[Decimal, ...]]
    failures: Tuple[IterationFailure, ...]


def iteration_projection(scenario: ScenarioInput, rules: TaxYearRules,
                         market: MarketAssumptions, base_seed: int, index: int,
                         return_floor: Decimal, advise: bool = False) -> ScenarioResult:
    """Full projection for iteration ``index`` with its own sampled returns.

    Iteration ``i`` always draws from ``default_rng([base_seed, i])``, so
    results do not depend on how iterations are batched or scheduled.
    Optimization suggestions are skipped unless ``advise`` is set.
    """
    rng = np.random.default_rng([base_seed, index])
    generator = BoxMullerReturnGenerator(market, rng, return_floor)
    returns = generator.sample_path(scenario.asset_classes(), len(scenario.years))
    return ScenarioProjector(scenario, rules, returns=returns, fingerprint='',
                             advise=advise).run()


def run_batch(scenario: ScenarioInput, rules: TaxYearRules, market: MarketAssumptions,
              base_seed: int, indices: Sequence[int], return_floor: Decimal,
              cancel_token: Optional[CancellationToken] = None) -> BatchOutcome:
    """Run a batch of iterations; module level so process pools can pickle it.

    A failing iteration is recorded and the batch carries on. When a token is
    given (thread and serial executors) it is checked between iterations.
    """
    paths = {}
    failures = []
    for index in indices:
        if cancel_token is not None and cancel_token.cancelled:
            break
        try:
            result = iteration_projection(scenario, rules, market, base_seed, index, return_floor)
        except ScenarioCalculationError as e:
            failures.append(IterationFailure(
                index=index, year=e.year, component_id=e.component_id,
                kind=getattr(e.cause, 'kind', type(e.cause).__name__), message=str(e)))
            continue
        paths[index] = tuple(p.net_worth.amount for p in result.projections)
    return BatchOutcome(paths, tuple(failures))


class MonteCarloSimulator:
    """Runs Monte Carlo simulations of a scenario.

    Each iteration is a full :class:`ScenarioProjector` pass in which every
    component's expected return is replaced by a return sampled for its
    asset class. Iterations are independent and run in batches on a
    ``concurrent.futures`` pool.

    Example:
        >>> market = MarketAssumptions.create_default()
        >>> simulator = MonteCarloSimulator(
        ...     market_assumptions=market,
        ...     config=MonteCarloConfig(iterations=500, seed=7)
        ... )
        >>> results = simulator.run(scenario, rules)
        >>> print(f"Success rate: {results.success_probability:.1%}")
    """

    def __init__(self,
                 market_assumptions: Optional[MarketAssumptions] = None,
                 config: Optional[MonteCarloConfig] = None):
        """Initialize the simulator.

        Args:
            market_assumptions: Asset class assumptions. If None, uses default assumptions.
            config: Simulation configuration. If None, uses defaults.
        """
        self.market = market_assumptions or MarketAssumptions.create_default()
        self.config = config or MonteCarloConfig()

    def prepare(self, scenario: ScenarioInput, rules: TaxYearRules) -> ScenarioInput:
        """Apply the horizon override and validate before any work starts.

        Raises:
            InvalidInput: If the scenario, rules or asset classes are invalid
        """
        if self.config.horizon_years is not None:
            scenario = replace(scenario, horizon_years=self.config.horizon_years)
        scenario.validate()
        if rules.jurisdiction is not scenario.jurisdiction or rules.tax_year != scenario.tax_year:
            raise InvalidInput('rules', f"rules {rules.version} do not apply to "
                                        f"{scenario.jurisdiction.value} {scenario.tax_year}")
        unknown = self.market.missing(scenario.asset_classes())
        if unknown:
            raise InvalidInput('asset_class', f"no market assumptions for {unknown}")
        goal = self.goal_for(scenario)
        if goal.currency != scenario.currency:
            raise InvalidInput('goal_amount', f"currency {goal.currency} does not match "
                                              f"scenario currency {scenario.currency}")
        return scenario

    def goal_for(self, scenario: ScenarioInput) -> Money:
        return self.config.goal_amount or scenario.goal_amount or Money.zero(scenario.currency)

    def _workers(self) -> int:
        return (self.config.max_workers or settings.runtime.get('max_workers')
                or os.cpu_count() or 1)

    def _batches(self, workers: int) -> List[range]:
        iterations = self.config.iterations
        size = self.config.batch_size
        if size is None:
            size = settings.runtime.get('montecarlo.batch_size') \
                or max(1, -(-iterations // (workers * 4)))
        return [range(start, min(start + size, iterations))
                for start in range(0, iterations, size)]

    def _executor(self, workers: int) -> Optional[Executor]:
        if self.config.executor == 'process':
            return ProcessPoolExecutor(max_workers=workers)
        if self.config.executor == 'thread':
            return ThreadPoolExecutor(max_workers=workers, thread_name_prefix='montecarlo')
        return None

    def run(self, scenario: ScenarioInput, rules: TaxYearRules,
            progress: Optional[ProgressCallback] = None,
            cancel_token: Optional[CancellationToken] = None) -> MonteCarloResults:
        """Run Monte Carlo simulation.

        Args:
            scenario: Scenario to simulate
            rules: Tax rules snapshot for the scenario
            progress: Called with the fraction of iterations completed after each batch
            cancel_token: Cancels iterations that have not started yet

        Returns:
            MonteCarloResults aggregated over successful iterations. A
            cancelled run returns the iterations finished so far, flagged
            ``cancelled``.

        Raises:
            InvalidInput: Before any iteration runs, if inputs are invalid
            SimulationCancelled: If cancelled before any iteration finished
            ScenarioCalculationError: If every iteration failed
        """
        scenario = self.prepare(scenario, rules)
        base_seed = self.config.seed
        if base_seed is None:
            base_seed = int(np.random.SeedSequence().entropy)
        workers = self._workers()
        batches = self._batches(workers)
        total = self.config.iterations

        logger.info("Monte Carlo run: %d iterations, %d batches, %s executor, seed %d",
                    total, len(batches), self.config.executor, base_seed)
        started = time.perf_counter()

        paths: Dict[int, Tuple[Decimal, ...]] = {}
        failures: List[IterationFailure] = []

        def collect(outcome: BatchOutcome):
            paths.update(outcome.paths)
            for failure in outcome.failures:
                logger.warning("Iteration %d failed in year %s: %s", failure.index,
                               failure.year, failure.message)
            failures.extend(outcome.failures)
            if progress is not None:
                progress((len(paths) + len(failures)) / total)

        args = (scenario, rules, self.market, base_seed)
        executor = self._executor(workers)
        if executor is None:
            for batch in batches:
                if cancel_token is not None and cancel_token.cancelled:
                    break
                collect(run_batch(*args, batch, self.config.return_floor, cancel_token))
        else:
            token = cancel_token if self.config.executor == 'thread' else None
            with executor:
                pending = {executor.submit(run_batch, *args, batch, self.config.return_floor,
                                           token) for batch in batches}
                self._drain(pending, collect, cancel_token)

        cancelled = cancel_token is not None and cancel_token.cancelled \
            and len(paths) + len(failures) < total
        elapsed = time.perf_counter() - started
        completed = len(paths) + len(failures)
        if cancelled:
            logger.info("Monte Carlo run cancelled after %d of %d iterations", completed, total)
            if completed == 0:
                raise SimulationCancelled(0)
        if not paths:
            first = failures[0]
            raise ScenarioCalculationError(
                first.year, RuntimeError(f"all {completed} iterations failed: {first.message}"),
                first.component_id)

        logger.info("Monte Carlo run finished: %d succeeded, %d failed in %.2fs",
                    len(paths), len(failures), elapsed)
        return MonteCarloResults.from_paths(
            paths,
            currency=scenario.currency,
            iterations_requested=total,
            seed=base_seed,
            years=list(scenario.years),
            goal_amount=self.goal_for(scenario),
            failures=failures,
            cancelled=cancelled,
            elapsed_seconds=elapsed,
        )

    @staticmethod
    def _drain(pending: set, collect: Callable[[BatchOutcome], None],
               cancel_token: Optional[CancellationToken]):
        """Collect finished batches; on cancellation drop batches not yet started."""
        cancelling = False
        while pending:
            done, pending = wait(pending, timeout=_POLL_SECONDS, return_when=FIRST_COMPLETED)
            for future in done:
                if not future.cancelled():
                    collect(future.result())
            if not cancelling and cancel_token is not None and cancel_token.cancelled:
                cancelling = True
                pending = {f for f in pending if not f.cancel()}

    def run_single(self, scenario: ScenarioInput, rules: TaxYearRules,
                   index: int = 0) -> ScenarioResult:
        """Run one iteration and return its full projection.

        Useful for debugging or detailed analysis of a single run; requires a seed.
        """
        if self.config.seed is None:
            raise InvalidInput('seed', "run_single needs a seeded config to be reproducible")
        scenario = self.prepare(scenario, rules)
        return iteration_projection(scenario, rules, self.market, self.config.seed, index,
                                    self.config.return_floor, advise=True)
