"""
Property repository.

Data access layer for Property model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_manager.models.property import Property
from commission_manager.repositories.base import BaseRepository


class PropertyRepository(BaseRepository[Property]):
    """Property repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize property repository."""
        super().__init__(Property, session)

    async def get_sold_by(self, person_id: int) -> list[Property]:
        """
        Get properties sold by a person, newest first.

        Args:
            person_id: Seller ID

        Returns:
            List of properties
        """
        stmt = (
            select(Property)
            .where(Property.sold_by == person_id)
            .order_by(Property.created_at.desc(), Property.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
