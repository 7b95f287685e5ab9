"""
Commission service.

Orchestrates store, engine and ledger: loads the seller, level tables
and referral chain of a property, previews the payout and commits it.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from commission_manager.config.business_constants import DEFAULT_LEVEL_PERCENTAGES
from commission_manager.config.settings import Settings
from commission_manager.models.enums import CommissionSource, LevelScope
from commission_manager.models.level import Level, ReferralLevel
from commission_manager.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)
from commission_manager.services.commission.engine import CommissionEngine
from commission_manager.services.commission.ledger import (
    CommittedBatch,
    LedgerEntry,
)
from commission_manager.services.commission.preview import (
    CommissionPreview,
    SaleInput,
)
from commission_manager.services.commission.store import CommissionStore
from commission_manager.utils.exceptions import (
    MissingPropertyOrPrice,
    MissingSeller,
)


@dataclass(frozen=True)
class CommissionSummary:
    """Ledger totals of one person."""

    person_id: int
    total: Decimal
    history: list[LedgerEntry]


class CommissionService(BaseService):
    """
    Commission workflow for one unit of work.

    preview() never writes; commit_commissions() recomputes and persists
    through the ledger, so a committed batch always equals a fresh preview.
    """

    def __init__(
        self,
        session: AsyncSession,
        engine: CommissionEngine | None = None,
        max_referral_depth: int | None = None,
    ) -> None:
        """
        Initialize commission service.

        Args:
            session: Async database session
            engine: Calculation policy (default: referral_chain mode)
            max_referral_depth: Hard bound on referral chains
        """
        super().__init__(session)
        self.engine = engine or CommissionEngine()
        self.store = CommissionStore(session, max_referral_depth=max_referral_depth)

    @classmethod
    def from_settings(
        cls, session: AsyncSession, settings: Settings
    ) -> "CommissionService":
        """Build service with the policy configured in settings."""
        return cls(
            session,
            engine=CommissionEngine.from_settings(settings),
            max_referral_depth=settings.max_referral_depth,
        )

    async def preview(
        self, property_id: int, seller_id: int | None = None
    ) -> CommissionPreview:
        """
        Calculate commissions for a property without writing anything.

        Args:
            property_id: Property ID
            seller_id: Seller ID (default: the property's sold_by)

        Returns:
            Complete preview

        Raises:
            MissingPropertyOrPrice: Property does not exist
            MissingSeller: No seller given and none recorded, or the
                           seller does not exist
            CycleDetected: Referral graph contains a loop
        """
        prop = await self.store.get_property(property_id)
        if prop is None:
            raise MissingPropertyOrPrice(f"Property {property_id} not found")

        if seller_id is None:
            seller_id = prop.sold_by
        if seller_id is None:
            raise MissingSeller(f"Property {property_id} has no seller")
        if await self.store.get_person(seller_id) is None:
            raise MissingSeller(f"Seller {seller_id} not found")

        levels = None
        if CommissionSource.FLAT_LEVEL in self.engine.modes:
            levels = await self.store.get_level_table(
                LevelScope.COMMISSION, property_id
            )

        chain = []
        referral_levels = None
        if CommissionSource.REFERRAL_CHAIN in self.engine.modes:
            chain = await self.store.get_referral_chain(seller_id)
            referral_levels = await self.store.get_level_table(LevelScope.REFERRAL)

        return self.engine.calculate(
            SaleInput.from_property(prop),
            seller_id,
            levels=levels,
            referral_chain=chain,
            referral_levels=referral_levels,
        )

    @log_operation
    async def commit_commissions(
        self,
        property_id: int,
        seller_id: int | None = None,
        override: bool = False,
    ) -> CommittedBatch:
        """
        Recalculate and persist commissions for a property.

        Args:
            property_id: Property ID
            seller_id: Seller ID (default: the property's sold_by)
            override: Replace an earlier commit with reversal rows and a
                      new revision

        Returns:
            Committed batch

        Raises:
            AlreadyCommitted: Property already committed and no override
            PersistenceError: Store failure, nothing written
        """
        preview = await self.preview(property_id, seller_id)
        return await self.store.insert_commission_records(preview, override=override)

    async def summary_for(self, person_id: int) -> CommissionSummary:
        """Total and chronological history of a person."""
        return CommissionSummary(
            person_id=person_id,
            total=await self.store.sum_commissions_for_person(person_id),
            history=await self.store.ledger.history_for(person_id),
        )

    @transaction
    async def ensure_default_levels(
        self, scope: LevelScope = LevelScope.COMMISSION
    ) -> list[Level] | list[ReferralLevel]:
        """
        Seed the default schedule if a scope has no levels.

        Seeded rows are flagged is_default. An existing scope is left
        untouched.

        Returns:
            Rows of the scope (seeded or existing)
        """
        existing = await self.store.get_levels(scope)
        if existing:
            return existing

        seeded = [
            await self.store.upsert_level(
                scope, level_order, percentage, is_default=True
            )
            for level_order, percentage in enumerate(
                DEFAULT_LEVEL_PERCENTAGES, start=1
            )
        ]

        self.logger.info(
            "Default levels seeded",
            extra={"scope": scope.value, "levels": len(seeded)},
        )
        return seeded

    @transaction
    async def set_level(
        self,
        scope: LevelScope,
        level_order: int,
        percentage: Decimal | int | str,
        property_id: int | None = None,
    ) -> Level | ReferralLevel:
        """
        Set the percentage of a level (admin edit, clears is_default).

        Args:
            scope: COMMISSION or REFERRAL
            level_order: Level number
            percentage: New percentage in 0..100
            property_id: Property ID for property-specific levels

        Returns:
            Stored level row

        Raises:
            InvalidPercentage: Out of range; the stored value is unchanged
        """
        table = await self.store.get_level_table(scope, property_id)
        entry = table.update(level_order, percentage)

        level = await self.store.upsert_level(
            scope,
            level_order,
            entry.percentage,
            property_id=property_id,
            is_default=False,
        )

        self.logger.info(
            "Level percentage set",
            extra={
                "scope": scope.value,
                "level_order": level_order,
                "percentage": str(entry.percentage),
                "property_id": property_id,
            },
        )
        return level
