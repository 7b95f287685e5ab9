"""
Services.

Business logic layer.
"""

from commission_manager.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)
from commission_manager.services.commission import (
    CommissionEngine,
    CommissionLedger,
    CommissionService,
    CommissionStore,
)
from commission_manager.services.person_service import PersonDirectory
from commission_manager.services.property_service import PropertyCatalog
from commission_manager.services.referral import ReferralChainResolver


__all__ = [
    "BaseService",
    "log_operation",
    "transaction",
    "CommissionEngine",
    "CommissionLedger",
    "CommissionService",
    "CommissionStore",
    "PersonDirectory",
    "PropertyCatalog",
    "ReferralChainResolver",
]
