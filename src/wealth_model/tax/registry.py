# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Jurisdiction to tax engine dispatch."""

from typing import Any, assert_never

from .au import AUTaxEngine
from .base import TaxEngine
from .rules import Jurisdiction
from .uk import UKTaxEngine
from .us import USTaxEngine

_AU = AUTaxEngine()
_US = USTaxEngine()
_UK = UKTaxEngine()


def engine_for(jurisdiction: Any) -> TaxEngine:
    """Return the stateless engine for ``jurisdiction``.

    Accepts a :class:`Jurisdiction` or its code (``'AU'``, ``'us'``...).

    Raises:
        UnsupportedJurisdiction: If the code is not a supported jurisdiction
    """
    jurisdiction = Jurisdiction.parse(jurisdiction)
    match jurisdiction:
        case Jurisdiction.AU:
            return _AU
        case Jurisdiction.US:
            return _US
        case Jurisdiction.UK:
            return _UK
        case _:
            assert_never(jurisdiction)
