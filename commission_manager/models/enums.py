"""
Enumerations shared by models and services.
"""

from enum import Enum


class PropertyType(str, Enum):
    """Property types."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    LAND = "land"
    LUXURY = "luxury"


class LevelScope(str, Enum):
    """Level table scopes."""

    # Fixed "Level N" slots with people rosters (levels table)
    COMMISSION = "commission"
    # Referral depth slots (referral_levels table)
    REFERRAL = "referral"


class CommissionSource(str, Enum):
    """Where a ledger row comes from."""

    FLAT_LEVEL = "flat_level"
    REFERRAL_CHAIN = "referral_chain"


class EntryType(str, Enum):
    """Ledger entry types."""

    CALCULATION = "calculation"
    # Compensating entry that nets a prior calculation to zero
    REVERSAL = "reversal"
