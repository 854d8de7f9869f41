# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Monte Carlo simulation results aggregation and analysis.

This module provides the MonteCarloResults class for analyzing the results
of Monte Carlo simulations, including percentile bands, success probability,
value-at-risk and drawdown.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from ..money import MONEY_CONTEXT, Money, ZERO


def percentile(sorted_values: Sequence[Decimal], pct: int) -> Decimal:
    """Linear-interpolated percentile of already sorted values.

    Example:
        >>> percentile([Decimal(0), Decimal(10)], 25)
        Decimal('2.50')
    """
    if not sorted_values:
        raise ValueError("percentile of an empty sequence")
    if len(sorted_values) == 1:
        return sorted_values[0]
    rank = MONEY_CONTEXT.divide(MONEY_CONTEXT.multiply(len(sorted_values) - 1, pct), 100)
    lower = int(rank)
    upper = min(lower + 1, len(sorted_values) - 1)
    fraction = MONEY_CONTEXT.subtract(rank, lower)
    low, high = sorted_values[lower], sorted_values[upper]
    return MONEY_CONTEXT.add(low, MONEY_CONTEXT.multiply(MONEY_CONTEXT.subtract(high, low),
                                                         fraction))


def max_drawdown(path: Sequence[Decimal]) -> Decimal:
    """Largest peak-to-trough decline of ``path`` as a fraction of the peak."""
    peak = None
    worst = ZERO
    for value in path:
        if peak is None or value > peak:
            peak = value
        if peak > ZERO:
            drawdown = MONEY_CONTEXT.divide(MONEY_CONTEXT.subtract(peak, value), peak)
            if drawdown > worst:
                worst = drawdown
    return worst


@dataclass(frozen=True)
class PercentileBand:
    year: int
    p10: Money
    p25: Money
    p50: Money
    p75: Money
    p90: Money

    LEVELS = (10, 25, 50, 75, 90)

    @classmethod
    def from_values(cls, year: int, sorted_values: Sequence[Decimal],
                    currency: str) -> 'PercentileBand':
        return cls(year, *(Money(percentile(sorted_values, p), currency) for p in cls.LEVELS))

    def to_dict(self) -> Dict[str, Any]:
        data = {'year': self.year}
        for level in self.LEVELS:
            data[f'p{level}'] = str(getattr(self, f'p{level}').rounded().amount)
        return data


@dataclass(frozen=True)
class IterationFailure:
    """One iteration excluded from aggregation."""
    index: int
    year: Optional[int]
    component_id: Optional[str]
    kind: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'index': self.index, 'year': self.year, 'component_id': self.component_id,
                'kind': self.kind, 'message': self.message}


FINAL_LEVELS = (5, 10, 25, 50, 75, 90, 95)


@dataclass(frozen=True)
class MonteCarloResults:
    """Aggregated Monte Carlo outcome.

    Example:
        >>> results = simulator.run(scenario, rules)
        >>> print(f"Success rate: {results.success_probability:.1%}")
        >>> results.get_percentile_df()
    """
    currency: str
    iterations_requested: int
    seed: int
    years: Tuple[int, ...]
    bands: Tuple[PercentileBand, ...]
    final_values: Tuple[Decimal, ...]
    goal_amount: Money
    average_max_drawdown: Decimal
    failures: Tuple[IterationFailure, ...] = ()
    cancelled: bool = False
    elapsed_seconds: float = field(default=0.0, compare=False)

    @classmethod
    def from_paths(cls, paths: Mapping[int, Sequence[Decimal]], *, currency: str,
                   iterations_requested: int, seed: int, years: Sequence[int],
                   goal_amount: Money, failures: Sequence[IterationFailure] = (),
                   cancelled: bool = False, elapsed_seconds: float = 0.0) -> 'MonteCarloResults':
        """Reduce per-iteration net worth paths (keyed by iteration index).

        Paths are treated as an unordered set: percentiles sort values, and
        means are accumulated in iteration index order.
        """
        if not paths:
            raise ValueError("no successful iterations to aggregate")
        ordered = [paths[index] for index in sorted(paths)]
        bands = []
        for position, year in enumerate(years):
            column = sorted(path[position] for path in ordered)
            bands.append(PercentileBand.from_values(year, column, currency))
        drawdowns = ZERO
        for path in ordered:
            drawdowns = MONEY_CONTEXT.add(drawdowns, max_drawdown(path))
        return cls(
            currency=currency,
            iterations_requested=iterations_requested,
            seed=seed,
            years=tuple(years),
            bands=tuple(bands),
            final_values=tuple(sorted(path[-1] for path in ordered)),
            goal_amount=goal_amount,
            average_max_drawdown=MONEY_CONTEXT.divide(drawdowns, len(ordered)),
            failures=tuple(sorted(failures, key=lambda f: f.index)),
            cancelled=cancelled,
            elapsed_seconds=elapsed_seconds,
        )

    @property
    def successful_iterations(self) -> int:
        return len(self.final_values)

    @property
    def failed_iterations(self) -> int:
        return len(self.failures)

    @property
    def completed_iterations(self) -> int:
        return self.successful_iterations + self.failed_iterations

    def _money(self, amount: Decimal) -> Money:
        return Money(amount, self.currency)

    def final_percentile(self, pct: int) -> Money:
        return self._money(percentile(self.final_values, pct))

    def final_percentiles(self) -> Dict[str, Money]:
        return {f'p{level}': self.final_percentile(level) for level in FINAL_LEVELS}

    def success_rate(self, min_balance: Optional[Money] = None) -> Decimal:
        """Fraction of iterations whose final net worth is at least ``min_balance``.

        Args:
            min_balance: Threshold; defaults to the goal amount
        """
        threshold = (min_balance or self.goal_amount).amount
        successful = sum(1 for value in self.final_values if value >= threshold)
        return MONEY_CONTEXT.divide(successful, len(self.final_values))

    @property
    def success_probability(self) -> Decimal:
        return self.success_rate()

    @property
    def value_at_risk_95(self) -> Money:
        """Loss at the 5th percentile of final net worth relative to the median, floored at zero."""
        loss = MONEY_CONTEXT.subtract(percentile(self.final_values, 50),
                                      percentile(self.final_values, 5))
        return self._money(max(loss, ZERO))

    @property
    def conditional_value_at_risk_95(self) -> Money:
        """Mean shortfall from the median over outcomes at or below the 5th percentile."""
        median = percentile(self.final_values, 50)
        cutoff = percentile(self.final_values, 5)
        tail = [v for v in self.final_values if v <= cutoff]
        total = ZERO
        for value in tail:
            total = MONEY_CONTEXT.add(total, MONEY_CONTEXT.subtract(median, value))
        return self._money(max(MONEY_CONTEXT.divide(total, len(tail)), ZERO))

    @property
    def mean_final(self) -> Money:
        total = ZERO
        for value in self.final_values:
            total = MONEY_CONTEXT.add(total, value)
        return self._money(MONEY_CONTEXT.divide(total, len(self.final_values)))

    @property
    def std_final(self) -> Money:
        mean = self.mean_final.amount
        total = ZERO
        for value in self.final_values:
            deviation = MONEY_CONTEXT.subtract(value, mean)
            total = MONEY_CONTEXT.add(total, MONEY_CONTEXT.multiply(deviation, deviation))
        variance = MONEY_CONTEXT.divide(total, len(self.final_values))
        return self._money(MONEY_CONTEXT.sqrt(variance))

    def band_for(self, year: int) -> PercentileBand:
        for band in self.bands:
            if band.year == year:
                return band
        raise KeyError(year)

    def get_percentile_data(self) -> Dict[str, List[Money]]:
        """Percentile bands as lists, one value per year."""
        return {f'p{level}': [getattr(band, f'p{level}') for band in self.bands]
                for level in PercentileBand.LEVELS}

    def get_percentile_df(self) -> pd.DataFrame:
        """Percentile bands as a DataFrame with years as index (floats, rounded to cents)."""
        data = {name: [float(m.rounded().amount) for m in values]
                for name, values in self.get_percentile_data().items()}
        df = pd.DataFrame(data)
        df['Year'] = list(self.years)
        return df.set_index('Year')

    def get_statistics(self) -> Dict[str, Money]:
        stats = {'mean': self.mean_final, 'std': self.std_final,
                 'min': self._money(self.final_values[0]),
                 'max': self._money(self.final_values[-1])}
        stats.update(self.final_percentiles())
        return stats

    def to_dict(self) -> Dict[str, Any]:
        def fmt(value: Money) -> str:
            return str(value.rounded().amount)

        return {
            'currency': self.currency,
            'seed': self.seed,
            'iterations_requested': self.iterations_requested,
            'successful_iterations': self.successful_iterations,
            'failed_iterations': self.failed_iterations,
            'cancelled': self.cancelled,
            'elapsed_seconds': round(self.elapsed_seconds, 3),
            'goal_amount': fmt(self.goal_amount),
            'success_probability': str(self.success_probability),
            'value_at_risk_95': fmt(self.value_at_risk_95),
            'conditional_value_at_risk_95': fmt(self.conditional_value_at_risk_95),
            'average_max_drawdown': str(self.average_max_drawdown),
            'statistics': {name: fmt(value) for name, value in self.get_statistics().items()},
            'bands': [band.to_dict() for band in self.bands],
            'failures': [failure.to_dict() for failure in self.failures],
        }

    def __repr__(self) -> str:
        return (f"MonteCarloResults(successful={self.successful_iterations}, "
                f"failed={self.failed_iterations}, years={len(self.years)}, "
                f"cancelled={self.cancelled})")
