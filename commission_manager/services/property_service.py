"""
Property catalog service.

Creates and reads properties that commissions are calculated against.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from commission_manager.models.enums import PropertyType
from commission_manager.models.property import Property
from commission_manager.repositories.commission_repository import (
    CommissionEventRepository,
)
from commission_manager.repositories.person_repository import PersonRepository
from commission_manager.repositories.property_repository import PropertyRepository
from commission_manager.services.base_service import BaseService, transaction
from commission_manager.utils.exceptions import InvalidPrice, ValidationError
from commission_manager.validators.common import validate_price


class PropertyCatalog(BaseService):
    """Property reference data."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize property catalog."""
        super().__init__(session)
        self.property_repo = PropertyRepository(session)
        self.person_repo = PersonRepository(session)
        self.event_repo = CommissionEventRepository(session)

    async def get_property(self, property_id: int) -> Property | None:
        """Get property by ID, None if not found."""
        return await self.property_repo.get_by_id(property_id)

    async def get_sold_by(self, person_id: int) -> list[Property]:
        """Get properties sold by a person, newest first."""
        return await self.property_repo.get_sold_by(person_id)

    @transaction
    async def create_property(
        self,
        price: Decimal | int | str,
        property_type: PropertyType | str,
        property_name: str = "",
        address: str = "",
        sold_by: int | None = None,
    ) -> Property:
        """
        Create a property.

        Args:
            price: Sale price (>= 0, at most 2 decimal places)
            property_type: One of PropertyType
            property_name: Display name
            address: Street address
            sold_by: Optional seller ID

        Returns:
            Created property

        Raises:
            InvalidPrice: Price is negative or malformed
            ValidationError: Unknown property type or seller
        """
        parsed_price = self._parse_price(price)
        parsed_type = self._parse_type(property_type)

        if sold_by is not None and await self.person_repo.get_by_id(sold_by) is None:
            raise ValidationError(f"Seller {sold_by} not found")

        prop = await self.property_repo.create(
            property_name=(property_name or "").strip(),
            property_type=parsed_type,
            address=(address or "").strip(),
            price=parsed_price,
            sold_by=sold_by,
        )

        self.logger.info(
            "Property created",
            extra={
                "property_id": prop.id,
                "property_type": parsed_type.value,
                "price": str(parsed_price),
                "sold_by": sold_by,
            },
        )
        return prop

    @transaction
    async def update_price(
        self, property_id: int, price: Decimal | int | str
    ) -> Property | None:
        """
        Change the price of a property.

        Committed ledger rows keep the price they were calculated with;
        a recalculation needs an explicit override commit.

        Returns:
            Updated property, None if not found
        """
        prop = await self.property_repo.get_by_id(property_id)
        if prop is None:
            return None

        parsed_price = self._parse_price(price)
        previous = prop.price
        prop.price = parsed_price
        await self.session.flush()

        if await self.event_repo.get_latest_revision(property_id):
            self.logger.warning(
                "Price changed after commissions were committed",
                extra={"property_id": property_id},
            )

        self.logger.info(
            "Property price updated",
            extra={
                "property_id": property_id,
                "previous_price": str(previous),
                "price": str(parsed_price),
            },
        )
        return prop

    @staticmethod
    def _parse_price(price: Decimal | int | str) -> Decimal:
        is_valid, parsed, error = validate_price(price)
        if not is_valid:
            raise InvalidPrice(error)
        return parsed

    @staticmethod
    def _parse_type(property_type: PropertyType | str) -> PropertyType:
        try:
            return PropertyType(property_type)
        except ValueError as exc:
            allowed = ", ".join(item.value for item in PropertyType)
            raise ValidationError(
                f"Unknown property type '{property_type}'. Allowed: {allowed}"
            ) from exc
