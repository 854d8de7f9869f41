# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

from .property import HousingCalculator, HousingComponent, annuity_payment

__all__ = ['HousingCalculator', 'HousingComponent', 'annuity_payment']
