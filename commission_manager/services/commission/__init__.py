"""
Commission services package.

Contains the commission core and its persistence:
- level_table: ordered level percentages with validation
- engine: pure flat-level and referral-chain calculation
- preview: result types of a calculation
- ledger: append-only, atomic persistence of previews
- store: data access contract over the repositories
- service: orchestration for one unit of work
"""

from commission_manager.services.commission.engine import (
    DEFAULT_COMMISSION_MODES,
    CommissionEngine,
    level_commission,
    split_evenly,
)
from commission_manager.services.commission.ledger import (
    CommissionLedger,
    CommittedBatch,
    LedgerEntry,
)
from commission_manager.services.commission.level_table import (
    LevelEntry,
    LevelTable,
)
from commission_manager.services.commission.preview import (
    CommissionLine,
    CommissionPreview,
    LevelResult,
    SaleInput,
)
from commission_manager.services.commission.service import (
    CommissionService,
    CommissionSummary,
)
from commission_manager.services.commission.store import CommissionStore


__all__ = [
    # Core
    "CommissionEngine",
    "DEFAULT_COMMISSION_MODES",
    "level_commission",
    "split_evenly",
    "LevelEntry",
    "LevelTable",
    # Results
    "CommissionLine",
    "CommissionPreview",
    "LevelResult",
    "SaleInput",
    # Persistence
    "CommissionLedger",
    "CommittedBatch",
    "LedgerEntry",
    "CommissionStore",
    # Orchestration
    "CommissionService",
    "CommissionSummary",
]
