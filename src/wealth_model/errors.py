# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Typed errors raised by the wealth model.

Every error carries a stable ``kind`` string so callers (and the HTTP layer)
can branch on the failure without parsing messages.
"""

from typing import Any, Dict, Optional


class WealthModelError(Exception):
    """Base class for all errors raised by the wealth model."""

    kind = 'WealthModelError'

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'message': str(self)}


class InvalidInput(WealthModelError, ValueError):
    """A scenario, component or configuration value is malformed."""

    kind = 'InvalidInput'

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'field': self.field, 'reason': self.reason}


class NegativeInput(InvalidInput):
    """The Tax Engine received a negative income or gain."""

    kind = 'NegativeInput'

    def __init__(self, field: str, value: Any):
        self.value = value
        super().__init__(field, f"must not be negative, got {value}")


class InvalidComponentConfig(InvalidInput):
    """A strategy component cannot be evaluated with its current settings.

    Raised the first time the component is used, not at construction, so
    partially configured templates can exist before they are run.
    """

    kind = 'InvalidComponentConfig'

    def __init__(self, component_id: str, field: str, reason: str):
        self.component_id = component_id
        super().__init__(field, reason)

    def __str__(self) -> str:
        return f"component '{self.component_id}' {self.field}: {self.reason}"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['component_id'] = self.component_id
        return data


class UnsupportedJurisdiction(WealthModelError, ValueError):
    kind = 'UnsupportedJurisdiction'

    def __init__(self, jurisdiction: Any):
        self.jurisdiction = jurisdiction
        super().__init__(f"Unsupported jurisdiction: {jurisdiction!r}")


class RulesNotFound(WealthModelError, LookupError):
    """No TaxYearRules snapshot exists for the requested jurisdiction and year."""

    kind = 'RulesNotFound'

    def __init__(self, jurisdiction: Any, tax_year: int):
        self.jurisdiction = jurisdiction
        self.tax_year = tax_year
        super().__init__(f"No tax rules for {jurisdiction} tax year {tax_year}")

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'jurisdiction': str(self.jurisdiction),
                'tax_year': self.tax_year, 'message': str(self)}


class CurrencyMismatch(WealthModelError, ValueError):
    kind = 'CurrencyMismatch'

    def __init__(self, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(f"Currency mismatch: {left} vs {right}")


class AmountOverflow(WealthModelError, ArithmeticError):
    """A money amount exceeded the configured magnitude ceiling."""

    kind = 'Overflow'

    def __init__(self, amount: Any, ceiling: Any):
        self.amount = amount
        self.ceiling = ceiling
        super().__init__(f"Amount {amount} exceeds ceiling {ceiling}")


class ScenarioCalculationError(WealthModelError):
    """A projection failed at a specific year; the run is aborted."""

    kind = 'ScenarioCalculationError'

    def __init__(self, year: int, cause: BaseException, component_id: Optional[str] = None):
        self.year = year
        self.component_id = component_id
        self.cause = cause
        where = f"year {year}"
        if component_id is not None:
            where += f", component '{component_id}'"
        super().__init__(f"Calculation failed at {where}: {cause}")

    def to_dict(self) -> Dict[str, Any]:
        cause_kind = getattr(self.cause, 'kind', type(self.cause).__name__)
        return {'kind': self.kind, 'year': self.year, 'component_id': self.component_id,
                'cause': cause_kind, 'message': str(self)}


class SimulationCancelled(WealthModelError):
    """A Monte Carlo run was cancelled before any iteration finished."""

    kind = 'CancelledError'

    def __init__(self, completed: int = 0):
        self.completed = completed
        super().__init__(f"Monte Carlo run cancelled after {completed} iterations")
