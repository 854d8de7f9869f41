# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Tests for the Flask HTTP boundary.
"""

import unittest

from ..api import create_app, status_for
from ..errors import (
    AmountOverflow,
    CurrencyMismatch,
    RulesNotFound,
    ScenarioCalculationError,
    SimulationCancelled,
)
from ..orchestrator import CalculationOrchestrator
from ..tax.rules import RulesRepository


def scenario_payload(**overrides):
    data = {
        'jurisdiction': 'AU',
        'tax_year': 2024,
        'horizon_years': 3,
        'start_age': 40,
        'annual_income': '100000',
        'starting_savings': '50000',
        'annual_expenses': '40000',
        'investments': [{'id': 'shares', 'account_type': 'brokerage',
                         'initial_balance': '20000', 'monthly_contribution': '500',
                         'expected_return': '0.07', 'asset_class': 'au_equities'}],
    }
    data.update(overrides)
    return data


class TestWealthApi(unittest.TestCase):
    """Tests for the wealth model API endpoints."""

    def setUp(self):
        self.orchestrator = CalculationOrchestrator(RulesRepository.with_defaults(),
                                                    max_workers=2)
        self.app = create_app(self.orchestrator)
        self.client = self.app.test_client()

    def tearDown(self):
        self.orchestrator.shutdown()

    def test_health(self):
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['ok'])

    def test_scenario(self):
        response = self.client.post('/wealth/api/v1/scenario',
                                    json={'scenario': scenario_payload()})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body['success'])
        result = body['result']
        self.assertEqual(result['rules_version'], 'AU-2024-r1')
        self.assertEqual(len(result['projections']), 4)
        self.assertEqual(result['projections'][0]['income'], '100000.00')
        self.assertIn('components', result['projections'][0])

    def test_scenario_without_components(self):
        response = self.client.post('/wealth/api/v1/scenario',
                                    json={'scenario': scenario_payload(),
                                          'include_components': False})
        self.assertNotIn('components', response.get_json()['result']['projections'][0])

    def test_decimal_numbers_in_body(self):
        response = self.client.post(
            '/wealth/api/v1/scenario', data='{"scenario": {"jurisdiction": "AU", '
            '"tax_year": 2024, "horizon_years": 1, "start_age": 30, '
            '"annual_income": 85000.10, "starting_savings": 0.1}}',
            content_type='application/json')
        self.assertEqual(response.status_code, 200)
        first = response.get_json()['result']['projections'][0]
        self.assertEqual(first['income'], '85000.10')

    def test_invalid_input(self):
        response = self.client.post('/wealth/api/v1/scenario',
                                    json={'scenario': scenario_payload(horizon_years=0)})
        self.assertEqual(response.status_code, 400)
        body = response.get_json()
        self.assertFalse(body['success'])
        self.assertEqual(body['error']['kind'], 'InvalidInput')
        self.assertEqual(body['error']['field'], 'horizon_years')

    def test_unsupported_jurisdiction(self):
        response = self.client.post('/wealth/api/v1/scenario',
                                    json={'scenario': scenario_payload(jurisdiction='NZ')})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error']['kind'], 'UnsupportedJurisdiction')

    def test_rules_not_found(self):
        response = self.client.post('/wealth/api/v1/scenario',
                                    json={'scenario': scenario_payload(tax_year=2031)})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error']['tax_year'], 2031)

    def test_calculation_error(self):
        housing = [{'id': 'flat', 'purchase_price': '500000', 'deposit': '100000'}]
        response = self.client.post('/wealth/api/v1/scenario',
                                    json={'scenario': scenario_payload(housing=housing)})
        self.assertEqual(response.status_code, 422)
        error = response.get_json()['error']
        self.assertEqual(error['component_id'], 'flat')
        self.assertEqual(error['cause'], 'InvalidComponentConfig')

    def test_bad_json(self):
        response = self.client.post('/wealth/api/v1/scenario', data='{not json',
                                    content_type='application/json')
        self.assertEqual(response.status_code, 400)
        response = self.client.post('/wealth/api/v1/scenario')
        self.assertEqual(response.status_code, 400)

    def test_montecarlo(self):
        response = self.client.post('/wealth/api/v1/montecarlo', json={
            'scenario': scenario_payload(),
            'simulation_config': {'iterations': 12, 'seed': 5, 'executor': 'serial',
                                  'goal_amount': '100000'},
        })
        self.assertEqual(response.status_code, 200)
        result = response.get_json()['result']
        self.assertEqual(result['successful_iterations'], 12)
        self.assertEqual(result['seed'], 5)
        self.assertEqual(len(result['bands']), 4)

    def test_montecarlo_custom_market(self):
        response = self.client.post('/wealth/api/v1/montecarlo', json={
            'scenario': scenario_payload(),
            'simulation_config': {'iterations': 4, 'seed': 5, 'executor': 'serial'},
            'market': {'cash': {'expected_return': '0.02', 'volatility': '0.01'}},
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error']['field'], 'asset_class')

    def test_montecarlo_requires_scenario(self):
        response = self.client.post('/wealth/api/v1/montecarlo', json={'simulation_config': {}})
        self.assertEqual(response.status_code, 400)

    def test_invalidate_rules(self):
        self.client.post('/wealth/api/v1/scenario', json={'scenario': scenario_payload()})
        response = self.client.post('/wealth/api/v1/rules/invalidate',
                                    json={'jurisdiction': 'AU', 'tax_year': 2024})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['evicted'], 1)
        response = self.client.post('/wealth/api/v1/rules/invalidate', json={'jurisdiction': 'AU'})
        self.assertEqual(response.status_code, 400)

    def test_status_mapping(self):
        self.assertEqual(status_for(SimulationCancelled(3)), 409)
        self.assertEqual(status_for(CurrencyMismatch('AUD', 'USD')), 400)
        self.assertEqual(status_for(AmountOverflow(1, 0)), 400)
        self.assertEqual(status_for(RulesNotFound('AU', 1999)), 404)
        self.assertEqual(status_for(ScenarioCalculationError(1, ValueError('x'))), 422)


if __name__ == '__main__':
    unittest.main()
