"""
Person repository.

Data access layer for Person model, including the referral chain query.
"""

from typing import NamedTuple

from sqlalchemy import literal, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from commission_manager.models.person import Person
from commission_manager.repositories.base import BaseRepository


class ReferralLink(NamedTuple):
    """One row of the referral chain query."""

    person_id: int
    referred_by: int | None
    depth: int


class PersonRepository(BaseRepository[Person]):
    """Person repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize person repository."""
        super().__init__(Person, session)

    async def get_by_username(self, username: str) -> Person | None:
        """
        Get person by username.

        Args:
            username: Unique username

        Returns:
            Person or None if not found
        """
        return await self.get_by(username=username)

    async def list_all(self) -> list[Person]:
        """Get all people ordered by ID."""
        return await self.find_by()

    async def get_referral_links(
        self, seller_id: int, max_depth: int
    ) -> list[ReferralLink]:
        """
        Get the seller and ancestor rows (recursive CTE).

        Fetches the whole chain in one query instead of one query per
        hop. Recursion stops at max_depth so a corrupted (cyclic) graph
        still terminates; cycle detection happens in the resolver.

        Args:
            seller_id: Seller person ID (returned at depth 0)
            max_depth: Maximum depth to follow

        Returns:
            Rows ordered by depth, empty if the seller does not exist
        """
        referrer = aliased(Person)

        chain = (
            select(
                Person.id.label("person_id"),
                Person.referred_by.label("referred_by"),
                literal(0).label("depth"),
            )
            .where(Person.id == seller_id)
            .cte("referral_chain", recursive=True)
        )

        previous = chain.alias()
        chain = chain.union_all(
            select(
                referrer.id,
                referrer.referred_by,
                previous.c.depth + 1,
            )
            .where(referrer.id == previous.c.referred_by)
            .where(previous.c.depth < max_depth)
        )

        stmt = select(
            chain.c.person_id, chain.c.referred_by, chain.c.depth
        ).order_by(chain.c.depth)

        result = await self.session.execute(stmt)
        return [
            ReferralLink(
                person_id=row.person_id,
                referred_by=row.referred_by,
                depth=row.depth,
            )
            for row in result.all()
        ]

    async def get_referral_map(self) -> dict[int, int | None]:
        """
        Get the whole referral graph as {person_id: referred_by}.

        Returns:
            Mapping of every person to their referrer
        """
        stmt = select(Person.id, Person.referred_by).order_by(Person.id)
        result = await self.session.execute(stmt)
        return {row.id: row.referred_by for row in result.all()}
