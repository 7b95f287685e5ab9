"""
Integration tests for CommissionLedger.

Tests cover:
- Atomic batch commit and row order
- Duplicate-commit guard (repeat and concurrent writer)
- Override with reversal rows
- Rollback when the store fails mid-batch
- Totals and chronological history
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.exc import IntegrityError, OperationalError

from commission_manager.models.enums import (
    CommissionSource,
    EntryType,
    LevelScope,
    PropertyType,
)
from commission_manager.repositories.commission_repository import (
    CommissionEventRepository,
)
from commission_manager.services.commission.engine import CommissionEngine
from commission_manager.services.commission.ledger import CommissionLedger
from commission_manager.services.commission.preview import SaleInput
from commission_manager.services.commission.service import CommissionService
from commission_manager.utils.exceptions import (
    AlreadyCommitted,
    MissingPropertyOrPrice,
    PersistenceError,
)


BOTH = (CommissionSource.FLAT_LEVEL, CommissionSource.REFERRAL_CHAIN)


@pytest.fixture
def service(db_session):
    """Service calculating both modes."""
    return CommissionService(db_session, engine=CommissionEngine(modes=BOTH))


@pytest_asyncio.fixture
async def flat_level_ids(store, directory, db_session, chain_ids):
    """Global levels {1: 5.0, 2: 3.0}; A is on level 1, level 2 is empty."""
    level_1 = await store.upsert_level(LevelScope.COMMISSION, 1, "5.0")
    level_2 = await store.upsert_level(LevelScope.COMMISSION, 2, "3.0")
    await db_session.commit()
    ids = (level_1.id, level_2.id)
    await directory.assign_to_level(ids[0], chain_ids["a"])
    return ids


@pytest.fixture
def ledger(db_session):
    return CommissionLedger(db_session)


class TestCommit:
    """Test commit()."""

    @pytest.mark.asyncio
    async def test_commit_persists_preview(
        self, service, ledger, property_id, chain_ids, referral_levels, flat_level_ids
    ):
        preview = await service.preview(property_id)

        batch = await ledger.commit(preview)

        assert batch.revision == 1
        assert not batch.is_override
        assert [entry.amount for entry in batch.entries] == [
            line.amount for line in preview.lines
        ]
        assert batch.total == Decimal("47500")

        stored = await ledger.entries_for_property(property_id)
        assert [(e.person_id, e.amount) for e in stored] == [
            (chain_ids["a"], Decimal("25000")),
            (chain_ids["b"], Decimal("15000")),
            (chain_ids["c"], Decimal("7500")),
        ]
        assert [e.source for e in stored] == [
            CommissionSource.FLAT_LEVEL,
            CommissionSource.REFERRAL_CHAIN,
            CommissionSource.REFERRAL_CHAIN,
        ]

    @pytest.mark.asyncio
    async def test_unbound_preview_rejected(self, ledger):
        preview = CommissionEngine().calculate(SaleInput(price=Decimal("100")), 1)

        with pytest.raises(MissingPropertyOrPrice):
            await ledger.commit(preview)


class TestDuplicateGuard:
    """A property is committed at most once without override."""

    @pytest.mark.asyncio
    async def test_second_commit_rejected(
        self, service, ledger, property_id, chain_ids, referral_levels
    ):
        preview = await service.preview(property_id)
        await ledger.commit(preview)

        with pytest.raises(AlreadyCommitted):
            await ledger.commit(preview)

        assert await ledger.total_for(chain_ids["b"]) == Decimal("15000")
        assert await ledger.total_for(chain_ids["c"]) == Decimal("7500")

    @pytest.mark.asyncio
    async def test_concurrent_writer_loses_race(
        self, service, ledger, session_maker, property_id, chain_ids, referral_levels
    ):
        """A writer that read a stale revision collides on the unique key."""
        preview = await service.preview(property_id)
        await ledger.commit(preview)

        async with session_maker() as other_session:
            other = CommissionLedger(other_session)
            other.event_repo.get_latest_revision = AsyncMock(return_value=0)

            with pytest.raises(AlreadyCommitted):
                await other.commit(preview)

            assert await other.total_for(chain_ids["b"]) == Decimal("15000")

    @pytest.mark.asyncio
    async def test_missing_seller_is_a_store_failure(self, ledger, property_id):
        """Only the revision key maps to AlreadyCommitted."""
        preview = CommissionEngine().calculate(
            SaleInput(price=Decimal("100000"), property_id=property_id), 9999
        )

        with pytest.raises(PersistenceError) as exc_info:
            await ledger.commit(preview)

        assert not isinstance(exc_info.value, AlreadyCommitted)
        assert isinstance(exc_info.value.__cause__, IntegrityError)
        assert not await ledger.has_commissions(property_id)


class TestOverride:
    """Recompute with reversal rows."""

    @pytest.mark.asyncio
    async def test_override_nets_previous_rows(
        self, service, ledger, property_id, chain_ids, referral_levels
    ):
        await ledger.commit(await service.preview(property_id))
        await service.set_level(LevelScope.REFERRAL, 1, "4.0")

        batch = await ledger.commit(await service.preview(property_id), override=True)

        assert batch.revision == 2
        assert batch.is_override
        reversals = [e for e in batch.entries if e.entry_type == EntryType.REVERSAL]
        assert sorted(e.amount for e in reversals) == [
            Decimal("-15000"),
            Decimal("-7500"),
        ]
        assert [e.sequence for e in batch.entries] == [1, 2, 3, 4]

        assert await ledger.total_for(chain_ids["b"]) == Decimal("20000")
        assert await ledger.total_for(chain_ids["c"]) == Decimal("7500")
        assert len(await ledger.entries_for_property(property_id)) == 6

    @pytest.mark.asyncio
    async def test_override_without_changes_keeps_totals(
        self, service, ledger, property_id, chain_ids, referral_levels
    ):
        preview = await service.preview(property_id)
        await ledger.commit(preview)

        await ledger.commit(preview, override=True)
        await ledger.commit(preview, override=True)

        assert await ledger.total_for(chain_ids["b"]) == Decimal("15000")
        events = await CommissionEventRepository(ledger.session).get_for_property(
            property_id
        )
        assert [event.revision for event in events] == [1, 2, 3]


class TestAtomicity:
    """A failing batch leaves nothing behind."""

    @pytest.mark.asyncio
    async def test_store_failure_rolls_back_event(
        self, service, ledger, property_id, chain_ids, referral_levels
    ):
        preview = await service.preview(property_id)
        ledger.commission_repo.add_rows = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("disk full"))
        )

        with pytest.raises(PersistenceError):
            await ledger.commit(preview)

        assert await ledger.event_repo.get_latest_revision(property_id) == 0
        assert await ledger.total_for(chain_ids["b"]) == Decimal("0")
        assert not await ledger.has_commissions(property_id)


class TestQueries:
    """Totals and history."""

    @pytest.mark.asyncio
    async def test_history_is_chronological(
        self, service, ledger, catalog, property_id, chain_ids, referral_levels
    ):
        await ledger.commit(await service.preview(property_id))
        second = await catalog.create_property(
            price="200000",
            property_type=PropertyType.COMMERCIAL,
            sold_by=chain_ids["a"],
        )
        await ledger.commit(await service.preview(second.id))

        history = await ledger.history_for(chain_ids["b"])

        assert [entry.amount for entry in history] == [
            Decimal("15000"),
            Decimal("6000"),
        ]
        assert history[0].calculated_at <= history[1].calculated_at
        assert await ledger.total_for(chain_ids["b"]) == Decimal("21000")

    @pytest.mark.asyncio
    async def test_unknown_person_has_no_history(self, ledger):
        assert await ledger.history_for(4242) == []
        assert await ledger.total_for(4242) == Decimal("0")


class TestPrecision:
    """Stored amounts keep all eight decimal places."""

    @pytest.mark.asyncio
    async def test_large_price_total_matches_preview(
        self, store, catalog, ledger, session_maker, db_session, chain_ids
    ):
        await store.upsert_level(LevelScope.REFERRAL, 1, "33.33")
        await db_session.commit()
        prop = await catalog.create_property(
            price="999999999.99",
            property_type=PropertyType.LUXURY,
            sold_by=chain_ids["a"],
        )
        prop_id = prop.id
        service = CommissionService(db_session)

        preview = await service.preview(prop_id)
        await ledger.commit(preview)

        assert preview.total == Decimal("333299999.99666700")
        assert await ledger.total_for(chain_ids["b"]) == preview.total

        async with session_maker() as fresh_session:
            history = await CommissionLedger(fresh_session).history_for(
                chain_ids["b"]
            )
        assert [entry.amount for entry in history] == [preview.total]
