"""
Commission ledger repository.

Data access layer for CommissionEvent, Commission and ReferralCommission.
Only inserts and reads are exposed; ledger rows are never updated.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_manager.config.business_constants import MONEY_QUANTUM
from commission_manager.models.commission import (
    Commission,
    CommissionEvent,
    ReferralCommission,
)
from commission_manager.repositories.base import BaseRepository


class CommissionEventRepository(BaseRepository[CommissionEvent]):
    """Calculation event repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission event repository."""
        super().__init__(CommissionEvent, session)

    async def get_latest_revision(self, property_id: int) -> int:
        """
        Get latest committed revision for a property.

        Args:
            property_id: Property ID

        Returns:
            Latest revision, 0 if the property has no events
        """
        stmt = select(func.max(CommissionEvent.revision)).where(
            CommissionEvent.property_id == property_id
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_for_property(self, property_id: int) -> list[CommissionEvent]:
        """Get events of a property ordered by revision."""
        stmt = (
            select(CommissionEvent)
            .where(CommissionEvent.property_id == property_id)
            .order_by(CommissionEvent.revision)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class CommissionRepository:
    """
    Ledger rows of both sources.

    Flat-level rows live in commissions, referral rows in
    referral_commissions; queries here merge the two.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        self.session = session
        self.flat = BaseRepository(Commission, session)
        self.referral = BaseRepository(ReferralCommission, session)

    async def add_rows(
        self,
        flat_rows: list[Commission],
        referral_rows: list[ReferralCommission],
    ) -> None:
        """
        Add ledger rows (flush only, the caller commits).

        Args:
            flat_rows: Flat-level rows
            referral_rows: Referral-chain rows
        """
        await self.flat.add_all(flat_rows)
        await self.referral.add_all(referral_rows)

    async def sum_for_person(self, person_id: int) -> Decimal:
        """
        Sum commission_amount over both ledgers for a person.

        Amounts are added as Decimal in Python; SQL SUM would go through
        floats on SQLite.

        Args:
            person_id: Recipient ID

        Returns:
            Net total (reversals included)
        """
        flat_stmt = select(Commission.commission_amount).where(
            Commission.person_id == person_id
        )
        referral_stmt = select(ReferralCommission.commission_amount).where(
            ReferralCommission.referrer_id == person_id
        )

        flat_amounts = (await self.session.execute(flat_stmt)).scalars().all()
        referral_amounts = (
            await self.session.execute(referral_stmt)
        ).scalars().all()

        total = sum(flat_amounts, Decimal("0")) + sum(referral_amounts, Decimal("0"))
        return total.quantize(MONEY_QUANTUM)

    async def get_flat_for_person(self, person_id: int) -> list[Commission]:
        """Get flat-level rows of a recipient."""
        stmt = (
            select(Commission)
            .where(Commission.person_id == person_id)
            .order_by(Commission.calculated_at, Commission.event_id, Commission.sequence)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_referral_for_person(
        self, person_id: int
    ) -> list[ReferralCommission]:
        """Get referral rows of a recipient."""
        stmt = (
            select(ReferralCommission)
            .where(ReferralCommission.referrer_id == person_id)
            .order_by(
                ReferralCommission.calculated_at,
                ReferralCommission.event_id,
                ReferralCommission.sequence,
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_flat_for_property(self, property_id: int) -> list[Commission]:
        """Get flat-level rows of a property in commit order."""
        stmt = (
            select(Commission)
            .where(Commission.property_id == property_id)
            .order_by(Commission.event_id, Commission.sequence)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_referral_for_property(
        self, property_id: int
    ) -> list[ReferralCommission]:
        """Get referral rows of a property in commit order."""
        stmt = (
            select(ReferralCommission)
            .where(ReferralCommission.property_id == property_id)
            .order_by(ReferralCommission.event_id, ReferralCommission.sequence)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
