"""
Commission store.

Data access contract consumed by the commission core. One store is
constructed per unit of work around an AsyncSession and passed to the
service explicitly.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_manager.models.enums import LevelScope
from commission_manager.models.level import Level, ReferralLevel
from commission_manager.models.person import Person
from commission_manager.models.property import Property
from commission_manager.repositories.level_repository import (
    LevelRepository,
    ReferralLevelRepository,
)
from commission_manager.repositories.person_repository import PersonRepository
from commission_manager.repositories.property_repository import PropertyRepository
from commission_manager.services.commission.ledger import (
    CommissionLedger,
    CommittedBatch,
)
from commission_manager.services.commission.level_table import LevelTable
from commission_manager.services.commission.preview import CommissionPreview
from commission_manager.services.referral.chain_resolver import (
    ReferralChainEntry,
    ReferralChainResolver,
)
from commission_manager.utils.exceptions import InvalidPercentage, MissingSeller
from commission_manager.validators.common import validate_percentage


class CommissionStore:
    """Store-backed implementation of the commission data contract."""

    def __init__(
        self, session: AsyncSession, max_referral_depth: int | None = None
    ) -> None:
        """
        Initialize store.

        Args:
            session: Async database session
            max_referral_depth: Hard bound on referral chains
                                (default: number of people)
        """
        self.session = session
        self.max_referral_depth = max_referral_depth
        self.person_repo = PersonRepository(session)
        self.property_repo = PropertyRepository(session)
        self.level_repo = LevelRepository(session)
        self.referral_level_repo = ReferralLevelRepository(session)
        self.ledger = CommissionLedger(session)

    async def get_person(self, person_id: int) -> Person | None:
        """Get person by ID, None if not found."""
        return await self.person_repo.get_by_id(person_id)

    async def list_people(self) -> list[Person]:
        """Get all people ordered by ID."""
        return await self.person_repo.list_all()

    async def get_property(self, property_id: int) -> Property | None:
        """Get property by ID, None if not found."""
        return await self.property_repo.get_by_id(property_id)

    async def get_levels(
        self, scope: LevelScope, property_id: int | None = None
    ) -> list[Level] | list[ReferralLevel]:
        """
        Get level rows of a scope ordered by level number.

        Args:
            scope: COMMISSION or REFERRAL
            property_id: Property whose own levels replace the global
                         schedule (COMMISSION scope only)
        """
        if scope == LevelScope.REFERRAL:
            return await self.referral_level_repo.get_ordered_levels()
        return await self.level_repo.get_ordered_levels(property_id)

    async def get_level_table(
        self, scope: LevelScope, property_id: int | None = None
    ) -> LevelTable:
        """
        Get a level table with rosters loaded.

        Args:
            scope: COMMISSION or REFERRAL
            property_id: Property ID for property-specific levels

        Returns:
            LevelTable ready for the engine
        """
        if scope == LevelScope.REFERRAL:
            return LevelTable.from_referral_levels(
                await self.referral_level_repo.get_ordered_levels()
            )

        levels = await self.level_repo.get_ordered_levels(property_id)
        rosters = await self.level_repo.get_rosters([level.id for level in levels])
        return LevelTable.from_levels(levels, rosters)

    async def upsert_level(
        self,
        scope: LevelScope,
        level_order: int,
        percentage: Decimal | int | str,
        property_id: int | None = None,
        is_default: bool = False,
    ) -> Level | ReferralLevel:
        """
        Create or update a level percentage (flush only).

        Args:
            scope: COMMISSION or REFERRAL
            level_order: Level number (>= 1)
            percentage: Percentage in 0..100
            property_id: Property ID for property-specific levels
            is_default: Mark as a seeded default

        Returns:
            Stored level row

        Raises:
            InvalidPercentage: Percentage outside 0..100; nothing is written
        """
        is_valid, parsed, error = validate_percentage(percentage)
        if not is_valid:
            raise InvalidPercentage(
                f"Invalid percentage for level {level_order}: {error}"
            )
        if level_order < 1:
            raise ValueError(f"level_order must be >= 1, got {level_order}")

        if scope == LevelScope.REFERRAL:
            return await self.referral_level_repo.upsert_percentage(
                level_order, parsed, is_default=is_default
            )
        return await self.level_repo.upsert_percentage(
            level_order, parsed, property_id=property_id, is_default=is_default
        )

    async def insert_commission_records(
        self, batch: CommissionPreview, override: bool = False
    ) -> CommittedBatch:
        """Persist a preview atomically (see CommissionLedger.commit)."""
        return await self.ledger.commit(batch, override=override)

    async def sum_commissions_for_person(self, person_id: int) -> Decimal:
        """Net commission total of a person."""
        return await self.ledger.total_for(person_id)

    async def get_referral_chain(self, seller_id: int) -> list[ReferralChainEntry]:
        """
        Get the referral chain of a seller with one recursive query.

        The query rows are fed to ReferralChainResolver, so ordering,
        depth and cycle semantics are the same as in memory.

        Args:
            seller_id: Seller person ID

        Returns:
            Ancestors ordered by depth (1 = direct referrer)

        Raises:
            MissingSeller: Seller does not exist
            CycleDetected: Referral graph contains a loop
        """
        max_depth = self.max_referral_depth
        if max_depth is None:
            max_depth = await self.person_repo.count()

        links = await self.person_repo.get_referral_links(seller_id, max_depth)
        if not links:
            raise MissingSeller(f"Seller {seller_id} not found")

        referrers: dict[int, int | None] = {}
        for link in links:
            if link.person_id in referrers:
                # The walk came back to a person already seen: keep the
                # first link so the resolver can report the loop
                continue
            referrers[link.person_id] = link.referred_by

        resolver = ReferralChainResolver(referrers, max_depth=max_depth)
        chain = resolver.resolve(seller_id)

        logger.debug(
            "Referral chain loaded",
            extra={"seller_id": seller_id, "depth": len(chain)},
        )
        return chain
