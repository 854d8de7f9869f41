# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Versioned tax rules.

A :class:`TaxYearRules` snapshot holds the brackets, caps and allowances for
one jurisdiction and one tax year. Snapshots are frozen; a change in the law
(or a correction) is published as a new snapshot with a higher revision,
which supersedes the old one in the :class:`RulesRepository`.
"""

import dataclasses
import json
import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type

from ..errors import InvalidInput, RulesNotFound, UnsupportedJurisdiction
from ..money import as_rate

logger = logging.getLogger(__name__)


class Jurisdiction(str, Enum):
    """Supported tax jurisdictions."""

    AU = 'AU'
    US = 'US'
    UK = 'UK'

    @classmethod
    def parse(cls, value: Any) -> 'Jurisdiction':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnsupportedJurisdiction(value) from None

    @property
    def currency(self) -> str:
        return _CURRENCIES[self]


_CURRENCIES = {
    Jurisdiction.AU: 'AUD',
    Jurisdiction.US: 'USD',
    Jurisdiction.UK: 'GBP',
}


@dataclass(frozen=True)
class TaxBracket:
    """A progressive bracket: ``rate`` applies to income strictly above ``threshold``."""
    threshold: Decimal
    rate: Decimal


def _brackets(rows: Iterable[Tuple[Any, Any]]) -> Tuple[TaxBracket, ...]:
    return tuple(TaxBracket(as_rate(threshold), as_rate(rate)) for threshold, rate in rows)


def _validate_brackets(field: str, brackets: Tuple[TaxBracket, ...]):
    if not brackets:
        raise InvalidInput(field, "at least one bracket is required")
    if brackets[0].threshold != 0:
        raise InvalidInput(field, "first bracket must start at 0")
    for lower, upper in zip(brackets, brackets[1:]):
        if upper.threshold <= lower.threshold:
            raise InvalidInput(field, "thresholds must be strictly increasing")
    for bracket in brackets:
        if not 0 <= bracket.rate <= 1:
            raise InvalidInput(field, f"rate {bracket.rate} outside [0, 1]")


@dataclass(frozen=True, kw_only=True)
class TaxYearRules:
    """Common part of every jurisdiction's rules snapshot.

    Attributes:
        jurisdiction: Jurisdiction these rules belong to
        tax_year: Year label of the tax year (AU and UK: the year the tax
                  year ends in; US: the calendar year)
        revision: Increases each time the snapshot is corrected or replaced
        currency: Currency code for every amount in the snapshot
        brackets: Ordinary income brackets applied to taxable income
    """
    jurisdiction: Jurisdiction
    tax_year: int
    revision: int = 1
    currency: str = ''
    brackets: Tuple[TaxBracket, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'jurisdiction', Jurisdiction.parse(self.jurisdiction))
        if not self.currency:
            object.__setattr__(self, 'currency', self.jurisdiction.currency)
        if self.revision < 1:
            raise InvalidInput('revision', "must be at least 1")
        for field in dataclasses.fields(self):
            if field.name.endswith('brackets'):
                _validate_brackets(field.name, getattr(self, field.name))

    @property
    def key(self) -> Tuple[Jurisdiction, int]:
        return (self.jurisdiction, self.tax_year)

    @property
    def version(self) -> str:
        return f"{self.jurisdiction.value}-{self.tax_year}-r{self.revision}"


@dataclass(frozen=True, kw_only=True)
class AURules(TaxYearRules):
    medicare_levy_rate: Decimal = Decimal('0.02')
    medicare_levy_threshold: Decimal = Decimal('0')
    cgt_discount_rate: Decimal = Decimal('0.5')
    cgt_discount_min_months: int = 12
    company_tax_rate: Decimal = Decimal('0.30')
    concessional_cap: Decimal = Decimal('0')
    non_concessional_cap: Decimal = Decimal('0')
    super_contributions_tax_rate: Decimal = Decimal('0.15')
    super_earnings_tax_rate: Decimal = Decimal('0.15')
    contribution_age_limit: int = 75


@dataclass(frozen=True, kw_only=True)
class USRules(TaxYearRules):
    standard_deduction: Decimal = Decimal('0')
    ltcg_brackets: Tuple[TaxBracket, ...] = (TaxBracket(Decimal('0'), Decimal('0')),)
    long_term_min_months: int = 12
    limit_401k: Decimal = Decimal('0')
    catch_up_401k: Decimal = Decimal('0')
    limit_ira: Decimal = Decimal('0')
    catch_up_ira: Decimal = Decimal('0')
    catch_up_age: int = 50
    passive_loss_allowance: Decimal = Decimal('25000')


@dataclass(frozen=True, kw_only=True)
class UKRules(TaxYearRules):
    personal_allowance: Decimal = Decimal('12570')
    allowance_taper_threshold: Decimal = Decimal('100000')
    cgt_annual_exempt: Decimal = Decimal('3000')
    cgt_brackets: Tuple[TaxBracket, ...] = (TaxBracket(Decimal('0'), Decimal('0')),)
    dividend_allowance: Decimal = Decimal('500')
    dividend_brackets: Tuple[TaxBracket, ...] = (TaxBracket(Decimal('0'), Decimal('0')),)
    isa_allowance: Decimal = Decimal('20000')
    pension_annual_allowance: Decimal = Decimal('60000')
    pension_age_limit: int = 75


RULES_TYPES: Dict[Jurisdiction, Type[TaxYearRules]] = {
    Jurisdiction.AU: AURules,
    Jurisdiction.US: USRules,
    Jurisdiction.UK: UKRules,
}


def rules_from_dict(data: Mapping[str, Any]) -> TaxYearRules:
    """Build a rules snapshot from a plain mapping (e.g. parsed JSON).

    Bracket fields accept ``[[threshold, rate], ...]`` or a list of
    ``{"threshold": ..., "rate": ...}`` objects.
    """
    if 'jurisdiction' not in data:
        raise InvalidInput('jurisdiction', "is required")
    jurisdiction = Jurisdiction.parse(data['jurisdiction'])
    rules_type = RULES_TYPES[jurisdiction]
    known = {f.name: f for f in dataclasses.fields(rules_type)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise InvalidInput(unknown[0], f"unknown field for {jurisdiction.value} rules")

    kwargs: Dict[str, Any] = {'jurisdiction': jurisdiction}
    for name, raw in data.items():
        if name == 'jurisdiction':
            continue
        field_type = known[name].type
        try:
            if name.endswith('brackets'):
                rows = [(r['threshold'], r['rate']) if isinstance(r, Mapping) else tuple(r)
                        for r in raw]
                kwargs[name] = _brackets(_plain(v) for v in rows)
            elif field_type is Decimal:
                kwargs[name] = as_rate(_plain(raw))
            elif field_type is int:
                kwargs[name] = int(raw)
            else:
                kwargs[name] = raw
        except (TypeError, ValueError, KeyError) as e:
            raise InvalidInput(name, f"invalid value {raw!r}: {e}") from e
    return rules_type(**kwargs)


def _plain(value: Any) -> Any:
    if isinstance(value, tuple):
        return tuple(_plain(v) for v in value)
    if isinstance(value, float):
        return str(value)
    return value


RulesListener = Callable[[TaxYearRules, TaxYearRules], None]


class RulesRepository:
    """Read-only provider of rules snapshots keyed by jurisdiction and tax year.

    Lookups never extrapolate: a missing year raises :class:`RulesNotFound`.

    Example:
        >>> repo = RulesRepository.with_defaults()
        >>> repo.get('AU', 2024).version
        'AU-2024-r1'
    """

    def __init__(self, snapshots: Iterable[TaxYearRules] = ()):
        self._lock = threading.Lock()
        self._snapshots: Dict[Tuple[Jurisdiction, int], TaxYearRules] = {}
        self._listeners: List[RulesListener] = []
        for snapshot in snapshots:
            self.publish(snapshot)

    @classmethod
    def with_defaults(cls, rules_path: Optional[str] = None) -> 'RulesRepository':
        """Repository holding the bundled snapshots plus any configured file."""
        from ..config import config
        from .tables import default_snapshots

        repo = cls(default_snapshots())
        path = rules_path or config.runtime.get('rules_path')
        if path:
            repo.load_json(path)
        return repo

    def get(self, jurisdiction: Any, tax_year: int) -> TaxYearRules:
        key = (Jurisdiction.parse(jurisdiction), int(tax_year))
        with self._lock:
            snapshot = self._snapshots.get(key)
        if snapshot is None:
            raise RulesNotFound(key[0].value, key[1])
        return snapshot

    def latest(self, jurisdiction: Any) -> TaxYearRules:
        jurisdiction = Jurisdiction.parse(jurisdiction)
        with self._lock:
            years = [year for (j, year) in self._snapshots if j is jurisdiction]
        if not years:
            raise RulesNotFound(jurisdiction.value, 0)
        return self.get(jurisdiction, max(years))

    def publish(self, rules: TaxYearRules) -> bool:
        """Add a snapshot, superseding an older revision for the same year.

        Returns:
            True if the snapshot was stored, False if an identical one exists

        Raises:
            InvalidInput: If the revision does not increase
        """
        with self._lock:
            existing = self._snapshots.get(rules.key)
            if existing is not None:
                if existing == rules:
                    return False
                if rules.revision <= existing.revision:
                    raise InvalidInput(
                        'revision',
                        f"{rules.version} does not supersede {existing.version}")
            self._snapshots[rules.key] = rules
            listeners = list(self._listeners)

        if existing is None:
            logger.info("Published tax rules %s", rules.version)
        else:
            logger.info("Tax rules %s superseded by %s", existing.version, rules.version)
            for listener in listeners:
                listener(existing, rules)
        return True

    def subscribe(self, listener: RulesListener) -> Callable[[], None]:
        """Register ``listener(old, new)`` for superseded snapshots.

        Returns:
            A callable that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
        return unsubscribe

    def load_json(self, path: str) -> int:
        """Publish every snapshot in a JSON file (an object or a list of objects).

        Returns:
            Number of snapshots stored
        """
        try:
            with Path(path).open('r', encoding='utf-8') as handle:
                data = json.load(handle, parse_float=Decimal)
        except FileNotFoundError as e:
            raise InvalidInput('rules_path', f"file not found: {path}") from e
        except json.JSONDecodeError as e:
            raise InvalidInput('rules_path', f"invalid JSON: {e}") from e
        entries = data if isinstance(data, list) else [data]
        return sum(1 for entry in entries if self.publish(rules_from_dict(entry)))

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)

    def __contains__(self, key: Tuple[Any, int]) -> bool:
        jurisdiction, tax_year = key
        with self._lock:
            return (Jurisdiction.parse(jurisdiction), tax_year) in self._snapshots
