"""
Level repositories.

Data access layer for Level, LevelAssignment and ReferralLevel models.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_manager.config.business_constants import LEVEL_NAME_TEMPLATE
from commission_manager.models.level import (
    Level,
    LevelAssignment,
    ReferralLevel,
)
from commission_manager.repositories.base import BaseRepository


class LevelRepository(BaseRepository[Level]):
    """Commission level repository with roster queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize level repository."""
        super().__init__(Level, session)

    async def get_ordered_levels(
        self, property_id: int | None = None
    ) -> list[Level]:
        """
        Get levels ordered by level_order.

        A property with its own levels uses them; otherwise the
        global schedule applies.

        Args:
            property_id: Property ID or None for the global schedule

        Returns:
            List of levels ordered by level_order
        """
        if property_id is not None:
            own = await self._get_scope(property_id)
            if own:
                return own

        return await self._get_scope(None)

    async def _get_scope(self, property_id: int | None) -> list[Level]:
        """Get levels of exactly one scope."""
        stmt = select(Level).order_by(Level.level_order)
        if property_id is None:
            stmt = stmt.where(Level.property_id.is_(None))
        else:
            stmt = stmt.where(Level.property_id == property_id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_order(
        self, level_order: int, property_id: int | None = None
    ) -> Level | None:
        """
        Get level by order within a scope.

        Args:
            level_order: Level number
            property_id: Property ID or None for the global schedule

        Returns:
            Level or None if not found
        """
        stmt = select(Level).where(Level.level_order == level_order)
        if property_id is None:
            stmt = stmt.where(Level.property_id.is_(None))
        else:
            stmt = stmt.where(Level.property_id == property_id)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_next_order(self, property_id: int | None = None) -> int:
        """Get the next free level_order in a scope."""
        stmt = select(func.max(Level.level_order))
        if property_id is None:
            stmt = stmt.where(Level.property_id.is_(None))
        else:
            stmt = stmt.where(Level.property_id == property_id)

        result = await self.session.execute(stmt)
        return (result.scalar() or 0) + 1

    async def upsert_percentage(
        self,
        level_order: int,
        percentage: Decimal,
        property_id: int | None = None,
        is_default: bool = False,
    ) -> Level:
        """
        Create or update the percentage of a level.

        Args:
            level_order: Level number
            percentage: Validated percentage
            property_id: Property ID or None for the global schedule
            is_default: Mark the row as a seeded default

        Returns:
            Created or updated level
        """
        level = await self.get_by_order(level_order, property_id)

        if level is None:
            return await self.create(
                name=LEVEL_NAME_TEMPLATE.format(order=level_order),
                level_order=level_order,
                commission_percentage=percentage,
                property_id=property_id,
                is_default=is_default,
            )

        if level.commission_percentage != percentage or level.is_default != is_default:
            level.commission_percentage = percentage
            level.is_default = is_default
            await self.session.flush()
            await self.session.refresh(level)

        return level

    async def get_rosters(
        self, level_ids: list[int]
    ) -> dict[int, list[int]]:
        """
        Get people assigned to each level in one query.

        Args:
            level_ids: Level IDs

        Returns:
            Dict mapping level_id to person IDs in assignment order
        """
        rosters: dict[int, list[int]] = {level_id: [] for level_id in level_ids}
        if not level_ids:
            return rosters

        stmt = (
            select(LevelAssignment.level_id, LevelAssignment.person_id)
            .where(LevelAssignment.level_id.in_(level_ids))
            .order_by(LevelAssignment.id)
        )
        result = await self.session.execute(stmt)

        for row in result.all():
            rosters[row.level_id].append(row.person_id)

        return rosters

    async def get_assignment(
        self, level_id: int, person_id: int
    ) -> LevelAssignment | None:
        """Get roster membership if it exists."""
        stmt = select(LevelAssignment).where(
            LevelAssignment.level_id == level_id,
            LevelAssignment.person_id == person_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_assignment(
        self, level_id: int, person_id: int
    ) -> LevelAssignment:
        """Add a person to a level roster (flush only)."""
        assignment = LevelAssignment(level_id=level_id, person_id=person_id)
        self.session.add(assignment)
        await self.session.flush()
        return assignment

    async def remove_assignment(self, assignment: LevelAssignment) -> None:
        """Remove a roster membership (flush only)."""
        await self.session.delete(assignment)
        await self.session.flush()


class ReferralLevelRepository(BaseRepository[ReferralLevel]):
    """Referral level repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral level repository."""
        super().__init__(ReferralLevel, session)

    async def get_ordered_levels(self) -> list[ReferralLevel]:
        """Get referral levels ordered by level."""
        stmt = select(ReferralLevel).order_by(ReferralLevel.level)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_level(self, level: int) -> ReferralLevel | None:
        """Get referral level by depth key."""
        return await self.get_by(level=level)

    async def upsert_percentage(
        self,
        level: int,
        percentage: Decimal,
        is_default: bool = False,
    ) -> ReferralLevel:
        """
        Create or update the percentage of a referral level.

        Args:
            level: Referral level key
            percentage: Validated percentage
            is_default: Mark the row as a seeded default

        Returns:
            Created or updated referral level
        """
        row = await self.get_by_level(level)

        if row is None:
            return await self.create(
                level=level,
                commission_percentage=percentage,
                is_default=is_default,
            )

        if row.commission_percentage != percentage or row.is_default != is_default:
            row.commission_percentage = percentage
            row.is_default = is_default
            await self.session.flush()
            await self.session.refresh(row)

        return row
