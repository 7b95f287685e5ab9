"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from commission_manager.models.base import Base
from commission_manager.models.commission import (
    Commission,
    CommissionEvent,
    ReferralCommission,
)
from commission_manager.models.enums import (
    CommissionSource,
    EntryType,
    LevelScope,
    PropertyType,
)
from commission_manager.models.level import (
    Level,
    LevelAssignment,
    ReferralLevel,
)
from commission_manager.models.person import Person
from commission_manager.models.property import Property


__all__ = [
    "Base",
    # Reference data
    "Person",
    "Property",
    "Level",
    "LevelAssignment",
    "ReferralLevel",
    # Ledger
    "CommissionEvent",
    "Commission",
    "ReferralCommission",
    # Enums
    "CommissionSource",
    "EntryType",
    "LevelScope",
    "PropertyType",
]
