# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Tests for scenario validation, deterministic projection and payload parsing.
"""

import unittest
from decimal import Decimal

from ..errors import InvalidInput, ScenarioCalculationError, UnsupportedJurisdiction
from ..housing.property import HousingComponent
from ..orchestrator.fingerprint import scenario_fingerprint
from ..scenario import ProjectorState, ScenarioProjector, compute_scenario
from ..scenario.inputs import ScenarioInput
from ..scenario.results import deduplicate_optimizations
from ..serialization import market_from_dict, monte_carlo_config_from_dict, scenario_from_dict
from ..tax import AUTaxEngine
from ..tax.optimizations import Optimization
from ..tax.tables import AU_2024, AU_2025, UK_2025
from .scenarios import au_scenario, aud, brokerage, gbp, rental_property, super_account


class TestScenarioValidation(unittest.TestCase):
    """Tests for ScenarioInput.validate."""

    def assertInvalid(self, field, scenario):
        with self.assertRaises(InvalidInput) as ctx:
            scenario.validate()
        self.assertEqual(ctx.exception.field, field)

    def test_valid(self):
        scenario = au_scenario()
        self.assertIs(scenario.validate(), scenario)
        self.assertEqual(list(scenario.years), [0, 1, 2, 3, 4, 5])

    def test_horizon_bounds(self):
        self.assertInvalid('horizon_years', au_scenario(horizon_years=0))
        self.assertInvalid('horizon_years', au_scenario(horizon_years=61))
        au_scenario(horizon_years=60).validate()

    def test_currency_must_match_jurisdiction(self):
        self.assertInvalid('currency', au_scenario(currency='USD'))

    def test_negative_amount(self):
        self.assertInvalid('annual_expenses', au_scenario(annual_expenses=aud(-1)))

    def test_unsupported_jurisdiction(self):
        with self.assertRaises(UnsupportedJurisdiction):
            au_scenario(jurisdiction='NZ')

    def test_duplicate_component_ids(self):
        scenario = au_scenario(investments=(brokerage(), brokerage()))
        self.assertInvalid("component 'shares'.id", scenario)

    def test_component_years_within_horizon(self):
        self.assertInvalid("component 'shares'.start_year",
                           au_scenario(investments=(brokerage(start_year=6),)))
        self.assertInvalid("component 'shares'.end_year",
                           au_scenario(investments=(brokerage(start_year=3, end_year=2),)))

    def test_asset_classes_in_first_use_order(self):
        scenario = au_scenario(housing=(rental_property(),),
                               investments=(super_account(), brokerage(),
                                            brokerage(id='more')))
        self.assertEqual(scenario.asset_classes(),
                         ('residential_property', 'balanced', 'au_equities'))


class TestScenarioProjector(unittest.TestCase):
    """Tests for ScenarioProjector."""

    def test_cash_and_tax_timing(self):
        """Tax assessed in one year is paid from cash in the next."""
        result = ScenarioProjector(au_scenario(horizon_years=2), AU_2024).run()
        self.assertEqual(len(result.projections), 3)
        first, second = result.projections[0], result.projections[1]

        self.assertEqual(first.tax_payable, aud(24967))
        self.assertEqual(first.tax_paid, aud(0))
        self.assertEqual(first.cash, aud(110000))
        self.assertEqual(first.net_worth, aud(85033))

        self.assertEqual(second.tax_paid, aud(24967))
        self.assertEqual(second.cash, aud(145033))
        self.assertEqual(second.net_worth, aud(120066))
        self.assertEqual(result.rules_version, 'AU-2024-r1')

    def test_deterministic(self):
        scenario = au_scenario(housing=(rental_property(),),
                               investments=(super_account(), brokerage()),
                               starting_savings=aud(200000))
        first = ScenarioProjector(scenario, AU_2024).run()
        second = ScenarioProjector(scenario, AU_2024).run()
        self.assertEqual(first, second)
        self.assertEqual(first.fingerprint, scenario_fingerprint(scenario, AU_2024))

    def test_income_stops_at_retirement(self):
        result = ScenarioProjector(au_scenario(retirement_age=36), AU_2024).run()
        self.assertEqual(result.projections[0].income, aud(100000))
        self.assertEqual(result.projections[1].income, aud(0))

    def test_income_growth(self):
        result = ScenarioProjector(au_scenario(income_growth=Decimal('0.03')), AU_2024).run()
        self.assertEqual(result.projections[2].income, aud(106090))

    def test_debt_repaid_from_cash(self):
        scenario = au_scenario(starting_debt=aud(20000), debt_interest_rate=Decimal('0.05'))
        first = ScenarioProjector(scenario, AU_2024).run().projections[0]
        self.assertEqual(first.debt, aud(0))
        self.assertEqual(first.cash, aud(89000))

    def test_negative_gearing_reduces_tax(self):
        scenario = au_scenario(housing=(rental_property(),), starting_savings=aud(200000))
        first = ScenarioProjector(scenario, AU_2024).run().projections[0]
        self.assertEqual(first.taxable_income, aud(93200))
        # 6800 shortfall at the 32.5% marginal rate
        self.assertEqual(first.negative_gearing_benefit, aud(2210))
        self.assertEqual(first.equity_of('rental'), aud(150000))

    def test_gearing_benefit_is_shortfall_at_marginal_rate(self):
        property_ = rental_property(deposit=aud(600000), purchase_costs=aud(0),
                                    annual_expenses=aud(30000))
        scenario = au_scenario(annual_income=aud(90000), housing=(property_,),
                               starting_savings=aud(700000))
        first = ScenarioProjector(scenario, AU_2024).run().projections[0]
        self.assertEqual(first.components[0].rental_shortfall, aud(4000))
        self.assertEqual(first.negative_gearing_benefit, aud(1300))

    def test_no_gearing_benefit_when_disabled(self):
        scenario = au_scenario(housing=(rental_property(negative_gearing=False),),
                               starting_savings=aud(200000))
        first = ScenarioProjector(scenario, AU_2024).run().projections[0]
        self.assertEqual(first.taxable_income, aud(100000))
        self.assertEqual(first.negative_gearing_benefit, aud(0))

    def test_sale_in_purchase_year_gets_discount(self):
        land = HousingComponent(id='land', purchase_price=aud(500000), deposit=aud(500000),
                                growth_rate=Decimal('0.10'), end_year=0)
        scenario = au_scenario(housing=(land,), starting_savings=aud(600000))
        first = ScenarioProjector(scenario, AU_2024).run().projections[0]
        gain = first.components[0].capital_gains[0]
        self.assertEqual((gain.gain, gain.holding_months), (aud(50000), 12))
        # 25000 discounted base at 32.5% and 37%, plus the levy
        self.assertEqual(first.capital_gains_tax, aud(8850))

    def test_gains_in_one_year_assessed_together(self):
        plots = tuple(HousingComponent(id=name, purchase_price=aud(500000),
                                       deposit=aud(500000), growth_rate=Decimal('0.10'),
                                       end_year=0)
                      for name in ('plot_a', 'plot_b'))
        scenario = au_scenario(housing=plots, starting_savings=aud(1100000))
        first = ScenarioProjector(scenario, AU_2024).run().projections[0]
        self.assertEqual(first.capital_gains_tax, aud(18600))
        self.assertEqual(first.capital_gains_tax, AUTaxEngine().capital_gains_tax(
            aud(100000), 12, AU_2024, other_income=aud(100000)))

    def test_uk_gains_share_one_annual_exemption(self):
        plots = tuple(HousingComponent(id=name, purchase_price=gbp(100000),
                                       deposit=gbp(100000), growth_rate=Decimal('0.10'),
                                       end_year=1)
                      for name in ('plot_a', 'plot_b'))
        scenario = ScenarioInput(jurisdiction='UK', currency='GBP', tax_year=2025,
                                 horizon_years=2, start_age=50, annual_income=gbp(0),
                                 starting_savings=gbp(250000), annual_expenses=gbp(0),
                                 housing=plots)
        sale_year = ScenarioProjector(scenario, UK_2025).run().projections[1]
        self.assertEqual(sale_year.capital_gains_tax, gbp(7098))

    def test_dividend_streams_assessed_together(self):
        scenario = au_scenario(investments=(
            brokerage(monthly_contribution=None, dividend_yield=Decimal('0.05')),
            brokerage(id='franked', monthly_contribution=None, dividend_yield=Decimal('0.035'),
                      franked_or_qualified=True),
        ))
        first = ScenarioProjector(scenario, AU_2024).run().projections[0]
        # 1000 unfranked on 100000, then 700 franked grossed up to 1000 less the 300 credit
        self.assertEqual(first.investment_tax, aud(390))

    def test_concessional_contributions_are_deducted(self):
        scenario = au_scenario(investments=(super_account(),))
        first = ScenarioProjector(scenario, AU_2024).run().projections[0]
        self.assertEqual(first.taxable_income, aud(88000))
        self.assertEqual(first.contributions, aud(12000))

    def test_clamped_contribution_warns_and_suggests(self):
        scenario = au_scenario(investments=(super_account(monthly_contribution=aud(3000)),))
        result = ScenarioProjector(scenario, AU_2024).run()
        self.assertEqual(len(result.warnings), 6)
        self.assertEqual(result.warnings[0].excess, aud(8500))
        codes = [o.code for o in result.optimizations]
        self.assertIn('contribution_limit_exceeded', codes)
        # One suggestion per code, from the earliest year
        self.assertEqual(len(codes), len(set(codes)))

    def test_cap_shared_between_accounts(self):
        scenario = au_scenario(investments=(
            super_account(monthly_contribution=aud(2000)),
            super_account(id='spouse_super', monthly_contribution=aud(1000)),
        ))
        first = ScenarioProjector(scenario, AU_2024).run().projections[0]
        contributed = {c.component_id: c.contributions.get('super_concessional')
                       for c in first.components}
        self.assertEqual(contributed, {'super': aud(24000), 'spouse_super': aud(3500)})

    def test_dataframe(self):
        scenario = au_scenario(investments=(brokerage(),))
        df = ScenarioProjector(scenario, AU_2024).run().to_dataframe()
        self.assertEqual(len(df), 6)
        self.assertEqual(df.index.name, 'Year')
        self.assertIn('equity:shares', df.columns)
        self.assertIn('net_worth', df.columns)

    def test_to_dict(self):
        result = ScenarioProjector(au_scenario(horizon_years=1), AU_2024).run()
        data = result.to_dict(include_components=False)
        self.assertEqual(data['projections'][0]['tax_payable'], '24967.00')
        self.assertNotIn('components', data['projections'][0])
        self.assertFalse(data['provisional'])

    def test_invalid_input_fails_before_computing(self):
        projector = ScenarioProjector(au_scenario(horizon_years=0), AU_2024)
        with self.assertRaises(InvalidInput):
            projector.run()
        self.assertEqual(projector.state, ProjectorState.FAILED)
        self.assertIsNone(projector.current_year)

    def test_rules_must_match_tax_year(self):
        with self.assertRaises(InvalidInput):
            ScenarioProjector(au_scenario(), AU_2025).run()

    def test_component_failure_names_year_and_component(self):
        scenario = au_scenario(housing=(rental_property(start_year=2, mortgage_rate=None),))
        projector = ScenarioProjector(scenario, AU_2024)
        with self.assertRaises(ScenarioCalculationError) as ctx:
            projector.run()
        self.assertEqual(ctx.exception.year, 2)
        self.assertEqual(ctx.exception.component_id, 'rental')
        self.assertEqual(ctx.exception.to_dict()['cause'], 'InvalidComponentConfig')
        self.assertEqual(projector.state, ProjectorState.FAILED)

    def test_single_use(self):
        projector = ScenarioProjector(au_scenario(horizon_years=1), AU_2024)
        projector.run()
        self.assertEqual(projector.state, ProjectorState.COMPLETED)
        with self.assertRaises(RuntimeError):
            projector.run()

    def test_sampled_returns_length_checked(self):
        with self.assertRaises(InvalidInput):
            ScenarioProjector(au_scenario(horizon_years=2), AU_2024, returns=[{}]).run()

    def test_compute_scenario_uses_bundled_rules(self):
        result = compute_scenario(au_scenario(horizon_years=1))
        self.assertEqual(result.rules_version, 'AU-2024-r1')


class TestDeduplicateOptimizations(unittest.TestCase):

    def test_earliest_year_kept(self):
        suggestions = [
            Optimization('b', 'later', 3),
            Optimization('a', 'first', 1),
            Optimization('b', 'earlier', 2),
            Optimization('a', 'again', 4),
        ]
        result = deduplicate_optimizations(suggestions)
        self.assertEqual([(o.code, o.year) for o in result], [('a', 1), ('b', 2)])


class TestSerialization(unittest.TestCase):
    """Tests for request payload parsing."""

    def payload(self, **overrides):
        data = {
            'jurisdiction': 'AU',
            'tax_year': 2024,
            'horizon_years': 3,
            'start_age': 40,
            'annual_income': '95000',
            'starting_savings': Decimal('20000.50'),
            'income_growth': '0.02',
            'investments': [{'id': 'super', 'account_type': 'super_concessional',
                             'initial_balance': '50000', 'monthly_contribution': 500,
                             'expected_return': '0.07'}],
            'housing': [{'id': 'home', 'purchase_price': '800000', 'deposit': '160000',
                         'mortgage_rate': '0.065', 'main_residence': True}],
        }
        data.update(overrides)
        return data

    def test_scenario_from_dict(self):
        scenario = scenario_from_dict(self.payload())
        self.assertEqual(scenario.currency, 'AUD')
        self.assertEqual(scenario.annual_income, aud(95000))
        self.assertEqual(scenario.starting_savings, aud('20000.50'))
        self.assertEqual(scenario.income_growth, Decimal('0.02'))
        self.assertEqual(scenario.investments[0].monthly_contribution, aud(500))
        self.assertTrue(scenario.housing[0].main_residence)
        scenario.validate()

    def test_floats_converted_through_str(self):
        scenario = scenario_from_dict(self.payload(savings_rate=0.045))
        self.assertEqual(scenario.savings_rate, Decimal('0.045'))

    def test_unknown_field(self):
        with self.assertRaises(InvalidInput) as ctx:
            scenario_from_dict(self.payload(salary='1'))
        self.assertEqual(ctx.exception.field, 'salary')

    def test_bad_nested_value(self):
        payload = self.payload()
        payload['housing'][0]['main_residence'] = 'yes'
        with self.assertRaises(InvalidInput) as ctx:
            scenario_from_dict(payload)
        self.assertEqual(ctx.exception.field, 'housing[0].main_residence')

    def test_missing_required_field(self):
        payload = self.payload()
        del payload['start_age']
        with self.assertRaises(InvalidInput):
            scenario_from_dict(payload)

    def test_monte_carlo_config(self):
        config = monte_carlo_config_from_dict(
            {'iterations': 200, 'seed': 3, 'goal_amount': '1000000', 'executor': 'serial'},
            'AUD')
        self.assertEqual(config.iterations, 200)
        self.assertEqual(config.goal_amount, aud(1000000))
        self.assertEqual(monte_carlo_config_from_dict(None).seed, None)
        with self.assertRaises(InvalidInput):
            monte_carlo_config_from_dict({'iterations': 0})

    def test_market_from_dict(self):
        market = market_from_dict({'au_equities': {'expected_return': '0.08',
                                                   'volatility': '0.15'}})
        self.assertEqual(market['au_equities'].volatility, Decimal('0.15'))
        self.assertIn('cash', market_from_dict(None))
        with self.assertRaises(InvalidInput):
            market_from_dict({'au_equities': {'expected_return': '0.08'}})


if __name__ == '__main__':
    unittest.main()
