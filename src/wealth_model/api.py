# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""HTTP boundary for the wealth model (Flask)."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from .errors import (
    AmountOverflow,
    CurrencyMismatch,
    InvalidInput,
    RulesNotFound,
    ScenarioCalculationError,
    SimulationCancelled,
    UnsupportedJurisdiction,
    WealthModelError,
)
from .orchestrator.service import CalculationOrchestrator, ComputationKind, ComputationRequest
from .serialization import market_from_dict, monte_carlo_config_from_dict, scenario_from_dict

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (SimulationCancelled, 409),
    (ScenarioCalculationError, 422),
    (RulesNotFound, 404),
    ((InvalidInput, UnsupportedJurisdiction, CurrencyMismatch, AmountOverflow), 400),
)


def status_for(error: WealthModelError) -> int:
    for error_types, status in ERROR_STATUS:
        if isinstance(error, error_types):
            return status
    return 500


class BadRequest(InvalidInput):
    pass


def _payload() -> Dict[str, Any]:
    raw = request.get_data(as_text=True)
    if not raw:
        raise BadRequest('body', "Request JSON body is required")
    try:
        payload = json.loads(raw, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise BadRequest('body', f"invalid JSON: {e.msg}") from None
    if not isinstance(payload, dict):
        raise BadRequest('body', "Request JSON body must be an object")
    return payload


def create_app(orchestrator: Optional[CalculationOrchestrator] = None) -> Flask:
    """Build the Flask app around ``orchestrator`` (a default one when None)."""
    app = Flask(__name__)
    service = orchestrator or CalculationOrchestrator()
    app.extensions['wealth_model'] = service

    @app.errorhandler(WealthModelError)
    def handle_error(error: WealthModelError) -> Tuple[Any, int]:
        status = status_for(error)
        if status >= 500:
            logger.error("Unhandled model error: %s", error)
        return jsonify({"success": False, "error": error.to_dict()}), status

    @app.get("/health")
    def health() -> Tuple[Any, int]:
        return jsonify({"ok": True, "service": "wealth-model-api"}), 200

    @app.post("/wealth/api/v1/scenario")
    def scenario() -> Tuple[Any, int]:
        payload = _payload()
        body = payload.get("scenario", payload)
        result = service.compute_scenario(scenario_from_dict(body))
        include_components = bool(payload.get("include_components", True))
        return jsonify({"success": True, "result": result.to_dict(include_components)}), 200

    @app.post("/wealth/api/v1/montecarlo")
    def montecarlo() -> Tuple[Any, int]:
        payload = _payload()
        if "scenario" not in payload:
            raise BadRequest('scenario', "is required")
        scenario_input = scenario_from_dict(payload["scenario"])
        mc_config = monte_carlo_config_from_dict(payload.get("simulation_config"),
                                                 scenario_input.currency)
        market = market_from_dict(payload["market"]) if payload.get("market") else None
        result = service.compute(ComputationRequest(ComputationKind.MONTE_CARLO,
                                                    scenario_input, mc_config, market))
        return jsonify({"success": True, "result": result.to_dict()}), 200

    @app.post("/wealth/api/v1/rules/invalidate")
    def invalidate_rules() -> Tuple[Any, int]:
        payload = _payload()
        if "jurisdiction" not in payload or "tax_year" not in payload:
            raise BadRequest('body', "jurisdiction and tax_year are required")
        try:
            tax_year = int(payload["tax_year"])
        except (TypeError, ValueError):
            raise BadRequest('tax_year', "must be an integer") from None
        evicted = service.invalidate(payload["jurisdiction"], tax_year)
        return jsonify({"success": True, "evicted": evicted}), 200

    return app
