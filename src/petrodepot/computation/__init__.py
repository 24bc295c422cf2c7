"""
PetroDepot Computation Engine Module

Pure calculators over snapshots of stored records, plus the engine that
feeds them.
"""

from petrodepot.computation.stock import StockLevelCalculator
from petrodepot.computation.conversion import UnitConversionCalculator
from petrodepot.computation.fuel import FuelConsumptionCalculator
from petrodepot.computation.balance import AccountBalanceCalculator
from petrodepot.computation.maintenance import MaintenanceCalculator
from petrodepot.computation.invoice import InvoiceCalculator
from petrodepot.computation.tanks import TankStockCalculator
from petrodepot.computation.engine import ComputationEngine

__all__ = [
    "StockLevelCalculator",
    "UnitConversionCalculator",
    "FuelConsumptionCalculator",
    "AccountBalanceCalculator",
    "MaintenanceCalculator",
    "InvoiceCalculator",
    "TankStockCalculator",
    "ComputationEngine",
]
