# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Conversion of JSON request payloads into model inputs.

Field names match the dataclass attributes. Numbers should arrive as JSON
strings or as numbers parsed with ``parse_float=Decimal``; binary floats are
converted through ``str()`` here and nowhere else.
"""

from dataclasses import fields
from decimal import Decimal
from typing import Any, Callable, Dict, Mapping, Optional

from .account.investment import InvestmentComponent
from .errors import InvalidInput
from .housing.property import HousingComponent
from .money import Money, as_rate
from .montecarlo.config import MonteCarloConfig
from .montecarlo.market_assumptions import MarketAssumptions
from .scenario.inputs import ScenarioInput
from .tax.rules import Jurisdiction


def _decimal(field: str, value: Any) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        return as_rate(value)
    except (TypeError, ValueError) as e:
        raise InvalidInput(field, str(e)) from None


def _integer(field: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidInput(field, "must be an integer")
    if isinstance(value, int):
        return value
    number = _decimal(field, value)
    if number != number.to_integral_value():
        raise InvalidInput(field, f"must be an integer, got {value!r}")
    return int(number)


def _boolean(field: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidInput(field, f"must be true or false, got {value!r}")
    return value


def _text(field: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidInput(field, f"must be a string, got {value!r}")
    return value


def _money_converter(currency: str) -> Callable[[str, Any], Money]:
    def convert(field: str, value: Any) -> Money:
        return Money(_decimal(field, value), currency)
    return convert


def _convert(prefix: str, data: Mapping[str, Any], target: type,
             converters: Mapping[str, Callable[[str, Any], Any]]) -> Dict[str, Any]:
    """Convert ``data`` into keyword arguments for ``target``."""
    if not isinstance(data, Mapping):
        raise InvalidInput(prefix, f"must be an object, got {type(data).__name__}")
    known = {f.name for f in fields(target)}
    kwargs = {}
    for key, value in data.items():
        name = f"{prefix}.{key}" if prefix else key
        if key not in known:
            raise InvalidInput(name, "unknown field")
        if value is None:
            continue
        converter = converters.get(key)
        kwargs[key] = converter(name, value) if converter else value
    return kwargs


def _build(prefix: str, target: type, kwargs: Dict[str, Any]):
    try:
        return target(**kwargs)
    except TypeError as e:
        raise InvalidInput(prefix or target.__name__, str(e)) from None


def _housing_converters(money) -> Dict[str, Callable[[str, Any], Any]]:
    return {
        'id': _text, 'name': _text, 'asset_class': _text,
        'start_year': _integer, 'end_year': _integer, 'loan_term_years': _integer,
        'purchase_price': money, 'deposit': money, 'purchase_costs': money,
        'annual_rent': money, 'annual_expenses': money,
        'mortgage_rate': _decimal, 'growth_rate': _decimal, 'rent_growth': _decimal,
        'vacancy_rate': _decimal, 'expense_growth': _decimal,
        'management_fee_rate': _decimal, 'selling_cost_rate': _decimal,
        'interest_only': _boolean, 'is_investment': _boolean,
        'negative_gearing': _boolean, 'main_residence': _boolean,
    }


def _investment_converters(money) -> Dict[str, Callable[[str, Any], Any]]:
    return {
        'id': _text, 'name': _text, 'account_type': _text, 'asset_class': _text,
        'start_year': _integer, 'end_year': _integer,
        'initial_balance': money, 'monthly_contribution': money,
        'contribution_growth': _decimal, 'expected_return': _decimal,
        'fee_rate': _decimal, 'dividend_yield': _decimal,
        'franked_or_qualified': _boolean,
    }


def scenario_from_dict(data: Mapping[str, Any]) -> ScenarioInput:
    """Build a :class:`ScenarioInput` from a JSON object.

    ``currency`` defaults to the jurisdiction's currency. The scenario is
    returned unvalidated; callers validate before computing.

    Raises:
        InvalidInput: Naming the first malformed field
        UnsupportedJurisdiction: If the jurisdiction code is unknown
    """
    if not isinstance(data, Mapping):
        raise InvalidInput('scenario', "must be an object")
    if 'jurisdiction' not in data:
        raise InvalidInput('jurisdiction', "is required")
    jurisdiction = Jurisdiction.parse(data['jurisdiction'])
    currency = _text('currency', data.get('currency') or jurisdiction.currency).upper()
    money = _money_converter(currency)

    top = {k: v for k, v in data.items() if k not in ('housing', 'investments')}
    kwargs = _convert('', top, ScenarioInput, {
        'jurisdiction': lambda field, value: jurisdiction,
        'currency': lambda field, value: currency,
        'tax_year': _integer, 'horizon_years': _integer, 'start_age': _integer,
        'retirement_age': _integer,
        'annual_income': money, 'starting_savings': money, 'annual_expenses': money,
        'starting_debt': money, 'goal_amount': money,
        'income_growth': _decimal, 'expense_growth': _decimal,
        'savings_rate': _decimal, 'debt_interest_rate': _decimal,
    })
    kwargs['currency'] = currency

    housing = []
    for index, item in enumerate(data.get('housing') or ()):
        prefix = f"housing[{index}]"
        housing.append(_build(prefix, HousingComponent,
                              _convert(prefix, item, HousingComponent, _housing_converters(money))))
    investments = []
    for index, item in enumerate(data.get('investments') or ()):
        prefix = f"investments[{index}]"
        investments.append(_build(prefix, InvestmentComponent,
                                  _convert(prefix, item, InvestmentComponent,
                                           _investment_converters(money))))
    kwargs['housing'] = tuple(housing)
    kwargs['investments'] = tuple(investments)
    return _build('scenario', ScenarioInput, kwargs)


def monte_carlo_config_from_dict(data: Optional[Mapping[str, Any]],
                                 currency: Optional[str] = None) -> MonteCarloConfig:
    """Build a :class:`MonteCarloConfig`; a missing or empty object gives the defaults.

    ``goal_amount`` needs ``currency`` (the scenario's currency).
    """
    if not data:
        return MonteCarloConfig()
    kwargs = _convert('simulation_config', data, MonteCarloConfig, {
        'iterations': _integer, 'seed': _integer, 'horizon_years': _integer,
        'max_workers': _integer, 'batch_size': _integer,
        'return_floor': _decimal, 'executor': _text,
        'goal_amount': _money_converter(currency or 'XXX'),
    })
    if 'goal_amount' in kwargs and currency is None:
        raise InvalidInput('simulation_config.goal_amount', "needs the scenario currency")
    return _build('simulation_config', MonteCarloConfig, kwargs)


def market_from_dict(data: Optional[Mapping[str, Any]]) -> MarketAssumptions:
    """Market assumptions from ``{name: {expected_return, volatility}}``; defaults when empty."""
    if not data:
        return MarketAssumptions.create_default()
    if not isinstance(data, Mapping):
        raise InvalidInput('market', "must be an object")
    converted = {}
    for name, values in data.items():
        if not isinstance(values, Mapping):
            raise InvalidInput(f"market.{name}", "must be an object")
        converted[name] = {key: _decimal(f"market.{name}.{key}", value)
                           for key, value in values.items()}
    return MarketAssumptions.from_dict(converted)
