"""
Person directory service.

Manages agents, their referral links and their flat-level roster
memberships.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from commission_manager.models.enums import LevelScope
from commission_manager.models.level import Level, LevelAssignment
from commission_manager.models.person import Person
from commission_manager.repositories.level_repository import LevelRepository
from commission_manager.repositories.person_repository import PersonRepository
from commission_manager.services.base_service import BaseService, transaction
from commission_manager.services.commission.level_table import level_name
from commission_manager.services.referral.chain_resolver import (
    ReferralChainResolver,
)
from commission_manager.utils.exceptions import (
    CycleDetected,
    DuplicateUsername,
    InvalidPersonData,
    UnknownReferrer,
    ValidationError,
)
from commission_manager.validators.common import (
    validate_email,
    validate_phone,
    validate_username,
)


MAX_NAME_LENGTH = 100


class PersonDirectory(BaseService):
    """People, referral links and level rosters."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize person directory."""
        super().__init__(session)
        self.person_repo = PersonRepository(session)
        self.level_repo = LevelRepository(session)

    async def get_person(self, person_id: int) -> Person | None:
        """Get person by ID, None if not found."""
        return await self.person_repo.get_by_id(person_id)

    async def get_by_username(self, username: str) -> Person | None:
        """Get person by username, None if not found."""
        return await self.person_repo.get_by_username(username)

    async def list_people(self) -> list[Person]:
        """Get all people ordered by ID."""
        return await self.person_repo.list_all()

    @transaction
    async def create_person(
        self,
        username: str,
        first_name: str,
        last_name: str,
        email: str,
        phone: str | None = None,
        referred_by: int | None = None,
    ) -> Person:
        """
        Create a person.

        Args:
            username: Unique username
            first_name: First name
            last_name: Last name
            email: Email address
            phone: Optional phone number
            referred_by: Optional referrer ID

        Returns:
            Created person with derived referral_level

        Raises:
            InvalidPersonData: A field fails validation
            DuplicateUsername: Username is taken
            UnknownReferrer: Referrer does not exist
        """
        username = (username or "").strip()
        first_name = (first_name or "").strip()
        last_name = (last_name or "").strip()
        email = (email or "").strip()
        phone = phone.strip() if phone and phone.strip() else None

        self._validate_fields(username, first_name, last_name, email, phone)

        if await self.person_repo.exists(username=username):
            raise DuplicateUsername(f"Username '{username}' is already taken")

        referral_level = 1
        if referred_by is not None:
            referrer = await self.person_repo.get_by_id(referred_by)
            if referrer is None:
                raise UnknownReferrer(f"Referrer {referred_by} not found")
            referral_level = referrer.referral_level + 1

        person = await self.person_repo.create(
            username=username,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            referred_by=referred_by,
            referral_level=referral_level,
        )

        self.logger.info(
            "Person created",
            extra={
                "person_id": person.id,
                "username": username,
                "referred_by": referred_by,
                "referral_level": referral_level,
            },
        )
        return person

    @staticmethod
    def _validate_fields(
        username: str,
        first_name: str,
        last_name: str,
        email: str,
        phone: str | None,
    ) -> None:
        """Raise InvalidPersonData for the first invalid field."""
        is_valid, error = validate_username(username)
        if not is_valid:
            raise InvalidPersonData(error)

        for label, value in (("First name", first_name), ("Last name", last_name)):
            if not value:
                raise InvalidPersonData(f"{label} is required")
            if len(value) > MAX_NAME_LENGTH:
                raise InvalidPersonData(
                    f"{label} is too long (maximum {MAX_NAME_LENGTH} characters)"
                )

        is_valid, error = validate_email(email)
        if not is_valid:
            raise InvalidPersonData(error)

        is_valid, error = validate_phone(phone)
        if not is_valid:
            raise InvalidPersonData(error)

    @transaction
    async def change_referrer(
        self, person_id: int, referred_by: int | None
    ) -> Person | None:
        """
        Change who referred a person.

        Re-derives referral_level for the person and all descendants.

        Args:
            person_id: Person to update
            referred_by: New referrer ID, or None to make a root

        Returns:
            Updated person, None if person_id does not exist

        Raises:
            CycleDetected: Self-referral or a change that closes a loop
            UnknownReferrer: New referrer does not exist
        """
        person = await self.person_repo.get_by_id(person_id)
        if person is None:
            return None

        referral_map = await self.person_repo.get_referral_map()

        if referred_by is not None:
            if referred_by not in referral_map:
                raise UnknownReferrer(f"Referrer {referred_by} not found")

            resolver = ReferralChainResolver(referral_map)
            if resolver.would_create_cycle(person_id, referred_by):
                raise CycleDetected(person_id, [person_id, referred_by])

        previous = person.referred_by
        person.referred_by = referred_by
        referral_map[person_id] = referred_by

        updated = await self._recompute_levels(person_id, referral_map)
        await self.session.flush()

        self.logger.info(
            "Referrer changed",
            extra={
                "person_id": person_id,
                "previous_referrer": previous,
                "referred_by": referred_by,
                "levels_updated": updated,
            },
        )
        return person

    async def _recompute_levels(
        self, person_id: int, referral_map: dict[int, int | None]
    ) -> int:
        """Re-derive referral_level below (and including) a person."""
        people = {p.id: p for p in await self.person_repo.list_all()}
        resolver = ReferralChainResolver(referral_map)

        updated = 0
        # Parents come before children, so every referrer is already final
        for current_id in [person_id, *resolver.descendants_of(person_id)]:
            current = people[current_id]
            parent_id = referral_map.get(current_id)
            level = people[parent_id].referral_level + 1 if parent_id else 1
            if current.referral_level != level:
                current.referral_level = level
                updated += 1

        return updated

    @transaction
    async def assign_to_level(
        self, level_id: int, person_id: int
    ) -> LevelAssignment:
        """
        Add a person to a flat-level roster.

        Assigning someone twice returns the existing membership.

        Raises:
            ValidationError: Level or person does not exist
        """
        await self._require_level_and_person(level_id, person_id)

        existing = await self.level_repo.get_assignment(level_id, person_id)
        if existing:
            return existing

        assignment = await self.level_repo.add_assignment(level_id, person_id)
        self.logger.info(
            "Person assigned to level",
            extra={"level_id": level_id, "person_id": person_id},
        )
        return assignment

    @transaction
    async def remove_from_level(self, level_id: int, person_id: int) -> bool:
        """
        Remove a person from a flat-level roster.

        Returns:
            True if a membership was removed
        """
        assignment = await self.level_repo.get_assignment(level_id, person_id)
        if assignment is None:
            return False

        await self.level_repo.remove_assignment(assignment)
        self.logger.info(
            "Person removed from level",
            extra={"level_id": level_id, "person_id": person_id},
        )
        return True

    async def _require_level_and_person(self, level_id: int, person_id: int) -> None:
        if await self.level_repo.get_by_id(level_id) is None:
            raise ValidationError(f"Level {level_id} not found")
        if await self.person_repo.get_by_id(person_id) is None:
            raise ValidationError(f"Person {person_id} not found")

    @transaction
    async def add_level(self, property_id: int | None = None) -> Level:
        """
        Append the next "Level N" slot with percentage 0.

        Args:
            property_id: Property ID for property-specific levels

        Returns:
            Created level
        """
        level_order = await self.level_repo.get_next_order(property_id)
        level = await self.level_repo.create(
            name=level_name(LevelScope.COMMISSION, level_order),
            level_order=level_order,
            commission_percentage=Decimal("0"),
            property_id=property_id,
            is_default=False,
        )

        self.logger.info(
            "Level added",
            extra={
                "level_id": level.id,
                "level_order": level_order,
                "property_id": property_id,
            },
        )
        return level
