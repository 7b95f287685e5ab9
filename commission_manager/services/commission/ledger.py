"""
Commission ledger.

Append-only persistence of commission previews. One commit writes one
CommissionEvent and all of its rows in a single transaction.

Policy:
- a property with committed commissions rejects a second commit unless
  override is requested
- an override first appends reversal rows that net every earlier
  recipient to zero, then the new calculation, under a new revision
- rows are never updated or deleted
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_manager.models.commission import (
    Commission,
    CommissionEvent,
    ReferralCommission,
)
from commission_manager.models.enums import CommissionSource, EntryType
from commission_manager.repositories.commission_repository import (
    CommissionEventRepository,
    CommissionRepository,
)
from commission_manager.services.commission.preview import CommissionPreview
from commission_manager.utils.db_decorators import with_rollback_on_error
from commission_manager.utils.exceptions import (
    AlreadyCommitted,
    MissingPropertyOrPrice,
)


@dataclass(frozen=True)
class LedgerEntry:
    """Read model of a ledger row from either table."""

    id: int
    event_id: int
    sequence: int
    property_id: int
    person_id: int
    source: CommissionSource
    level_order: int
    percentage: Decimal
    amount: Decimal
    entry_type: EntryType
    calculated_at: datetime
    level_id: int | None = None
    depth: int | None = None

    @classmethod
    def from_commission(cls, row: Commission) -> "LedgerEntry":
        """Build entry from a flat-level row."""
        return cls(
            id=row.id,
            event_id=row.event_id,
            sequence=row.sequence,
            property_id=row.property_id,
            person_id=row.person_id,
            source=CommissionSource.FLAT_LEVEL,
            level_order=row.level_order,
            level_id=row.level_id,
            percentage=row.commission_percentage,
            amount=row.commission_amount,
            entry_type=EntryType(row.entry_type),
            calculated_at=row.calculated_at,
        )

    @classmethod
    def from_referral(cls, row: ReferralCommission) -> "LedgerEntry":
        """Build entry from a referral row."""
        return cls(
            id=row.id,
            event_id=row.event_id,
            sequence=row.sequence,
            property_id=row.property_id,
            person_id=row.referrer_id,
            source=CommissionSource.REFERRAL_CHAIN,
            level_order=row.referral_level,
            depth=row.depth,
            percentage=row.commission_percentage,
            amount=row.commission_amount,
            entry_type=EntryType(row.entry_type),
            calculated_at=row.calculated_at,
        )


@dataclass(frozen=True)
class CommittedBatch:
    """Result of a ledger commit."""

    event_id: int
    property_id: int
    revision: int
    is_override: bool
    entries: tuple[LedgerEntry, ...]

    @property
    def total(self) -> Decimal:
        """Net amount written by this batch (reversals included)."""
        return sum((entry.amount for entry in self.entries), Decimal("0"))


def _sort_key(entry: LedgerEntry) -> tuple:
    return (entry.calculated_at, entry.event_id, entry.sequence)


REVISION_CONSTRAINT = "uq_commission_events_property_revision"


def _is_revision_conflict(exc: IntegrityError) -> bool:
    """True if the error is the (property_id, revision) unique violation."""
    message = str(exc.orig)
    # PostgreSQL names the constraint, SQLite lists its columns
    return REVISION_CONSTRAINT in message or (
        "UNIQUE constraint failed" in message
        and "commission_events.revision" in message
    )


class CommissionLedger:
    """Append-only commission ledger."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ledger.

        Args:
            session: Async database session (owned by the caller)
        """
        self.session = session
        self.event_repo = CommissionEventRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.logger = logger.bind(service=self.__class__.__name__)

    @with_rollback_on_error
    async def commit(
        self, preview: CommissionPreview, override: bool = False
    ) -> CommittedBatch:
        """
        Persist a preview as one atomic batch.

        Args:
            preview: Result of CommissionEngine.calculate
            override: Allow a new revision for a property that already
                      has committed commissions

        Returns:
            CommittedBatch with rows in commit order

        Raises:
            MissingPropertyOrPrice: Preview is not bound to a property
            AlreadyCommitted: Property already committed (or a concurrent
                              commit won the race) and override is False
            PersistenceError: Store failure; nothing was written
        """
        if preview.property_id is None:
            raise MissingPropertyOrPrice(
                "Preview is not bound to a stored property"
            )

        property_id = preview.property_id
        latest_revision = await self.event_repo.get_latest_revision(property_id)

        if latest_revision and not override:
            raise AlreadyCommitted(property_id)

        calculated_at = datetime.now(UTC)
        event = CommissionEvent(
            property_id=property_id,
            seller_id=preview.seller_id,
            revision=latest_revision + 1,
            is_override=latest_revision > 0,
            property_price=preview.price,
            total_amount=preview.total,
            calculated_at=calculated_at,
        )
        self.session.add(event)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            if not _is_revision_conflict(exc):
                raise
            # Another writer committed the same revision first
            raise AlreadyCommitted(property_id) from exc

        flat_rows: list[Commission] = []
        referral_rows: list[ReferralCommission] = []

        if latest_revision:
            await self._append_reversals(
                event, calculated_at, flat_rows, referral_rows
            )

        offset = len(flat_rows) + len(referral_rows)
        for line in preview.lines:
            if line.source == CommissionSource.FLAT_LEVEL:
                flat_rows.append(
                    Commission(
                        event_id=event.id,
                        sequence=offset + line.sequence,
                        property_id=property_id,
                        person_id=line.person_id,
                        level_id=line.level_id,
                        level_order=line.level_order,
                        commission_percentage=line.percentage,
                        commission_amount=line.amount,
                        entry_type=EntryType.CALCULATION.value,
                        calculated_at=calculated_at,
                    )
                )
            else:
                referral_rows.append(
                    ReferralCommission(
                        event_id=event.id,
                        sequence=offset + line.sequence,
                        property_id=property_id,
                        referrer_id=line.person_id,
                        depth=line.depth,
                        referral_level=line.level_order,
                        commission_percentage=line.percentage,
                        commission_amount=line.amount,
                        entry_type=EntryType.CALCULATION.value,
                        calculated_at=calculated_at,
                    )
                )

        await self.commission_repo.add_rows(flat_rows, referral_rows)
        await self.session.commit()

        entries = sorted(
            [LedgerEntry.from_commission(row) for row in flat_rows]
            + [LedgerEntry.from_referral(row) for row in referral_rows],
            key=lambda entry: entry.sequence,
        )

        self.logger.info(
            "Commission batch committed",
            extra={
                "property_id": property_id,
                "event_id": event.id,
                "revision": event.revision,
                "override": event.is_override,
                "rows": len(entries),
                "total": str(preview.total),
            },
        )

        return CommittedBatch(
            event_id=event.id,
            property_id=property_id,
            revision=event.revision,
            is_override=event.is_override,
            entries=tuple(entries),
        )

    async def _append_reversals(
        self,
        event: CommissionEvent,
        calculated_at: datetime,
        flat_rows: list[Commission],
        referral_rows: list[ReferralCommission],
    ) -> None:
        """Add rows that net every earlier recipient of the property to zero."""
        property_id = event.property_id
        sequence = 0

        flat_net: OrderedDict[tuple, list] = OrderedDict()
        for row in await self.commission_repo.get_flat_for_property(property_id):
            key = (row.person_id, row.level_order, row.level_id)
            if key not in flat_net:
                flat_net[key] = [Decimal("0"), row.commission_percentage]
            flat_net[key][0] += row.commission_amount

        for (person_id, level_order, level_id), (net, percentage) in flat_net.items():
            if net == 0:
                continue
            sequence += 1
            flat_rows.append(
                Commission(
                    event_id=event.id,
                    sequence=sequence,
                    property_id=property_id,
                    person_id=person_id,
                    level_id=level_id,
                    level_order=level_order,
                    commission_percentage=percentage,
                    commission_amount=-net,
                    entry_type=EntryType.REVERSAL.value,
                    calculated_at=calculated_at,
                )
            )

        referral_net: OrderedDict[tuple, list] = OrderedDict()
        for row in await self.commission_repo.get_referral_for_property(property_id):
            key = (row.referrer_id, row.depth, row.referral_level)
            if key not in referral_net:
                referral_net[key] = [Decimal("0"), row.commission_percentage]
            referral_net[key][0] += row.commission_amount

        for (referrer_id, depth, referral_level), (net, percentage) in referral_net.items():
            if net == 0:
                continue
            sequence += 1
            referral_rows.append(
                ReferralCommission(
                    event_id=event.id,
                    sequence=sequence,
                    property_id=property_id,
                    referrer_id=referrer_id,
                    depth=depth,
                    referral_level=referral_level,
                    commission_percentage=percentage,
                    commission_amount=-net,
                    entry_type=EntryType.REVERSAL.value,
                    calculated_at=calculated_at,
                )
            )

        self.logger.debug(
            "Reversal rows prepared",
            extra={"property_id": property_id, "rows": sequence},
        )

    async def total_for(self, person_id: int) -> Decimal:
        """
        Net commission total of a person across all properties.

        Args:
            person_id: Recipient ID

        Returns:
            Sum of commission_amount (0 for unknown people)
        """
        return await self.commission_repo.sum_for_person(person_id)

    async def history_for(self, person_id: int) -> list[LedgerEntry]:
        """
        Chronological ledger rows of a person.

        Args:
            person_id: Recipient ID

        Returns:
            Entries ordered by calculated_at, event and sequence
        """
        flat = await self.commission_repo.get_flat_for_person(person_id)
        referral = await self.commission_repo.get_referral_for_person(person_id)

        entries = [LedgerEntry.from_commission(row) for row in flat]
        entries += [LedgerEntry.from_referral(row) for row in referral]
        return sorted(entries, key=_sort_key)

    async def entries_for_property(self, property_id: int) -> list[LedgerEntry]:
        """All ledger rows of a property in commit order."""
        flat = await self.commission_repo.get_flat_for_property(property_id)
        referral = await self.commission_repo.get_referral_for_property(property_id)

        entries = [LedgerEntry.from_commission(row) for row in flat]
        entries += [LedgerEntry.from_referral(row) for row in referral]
        return sorted(entries, key=lambda entry: (entry.event_id, entry.sequence))

    async def has_commissions(self, property_id: int) -> bool:
        """True if the property has at least one committed event."""
        return await self.event_repo.get_latest_revision(property_id) > 0
