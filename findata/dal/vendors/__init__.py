"""Vendor registry and public exports."""

from .base import VendorClient
from .financial_datasets import FinancialDatasetsVendor
from .fmp import FmpVendor

__all__ = [
    "VendorClient",
    "FinancialDatasetsVendor",
    "FmpVendor",
]
