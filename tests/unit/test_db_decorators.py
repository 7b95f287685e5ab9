"""Unit tests for rollback handling."""

import pytest
from sqlalchemy.exc import OperationalError

from commission_manager.services.base_service import BaseService, transaction
from commission_manager.utils.db_decorators import with_rollback_on_error
from commission_manager.utils.exceptions import (
    MissingSeller,
    PersistenceError,
)


class Writer:
    """Minimal store-backed object."""

    def __init__(self, session):
        self.session = session

    @with_rollback_on_error
    async def fail_in_database(self):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    @with_rollback_on_error
    async def fail_validation(self):
        raise MissingSeller("no seller")

    @with_rollback_on_error
    async def succeed(self):
        return 42


class Service(BaseService):
    @transaction
    async def write(self, fail: bool = False):
        if fail:
            raise OperationalError("UPDATE", {}, Exception("locked"))
        return "ok"


class PropertyWriter(BaseService):
    """Service whose domain API has its own commit method."""

    async def commit(self, property_id: int):
        raise AssertionError("domain commit must not be called")

    @transaction
    async def write(self):
        return "ok"


class TestWithRollbackOnError:
    """Tests for with_rollback_on_error."""

    @pytest.mark.asyncio
    async def test_database_error_wrapped(self, mock_session):
        with pytest.raises(PersistenceError) as exc_info:
            await Writer(mock_session).fail_in_database()

        mock_session.rollback.assert_awaited_once()
        assert isinstance(exc_info.value.__cause__, OperationalError)

    @pytest.mark.asyncio
    async def test_validation_error_passes_through(self, mock_session):
        with pytest.raises(MissingSeller):
            await Writer(mock_session).fail_validation()

        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_success_no_rollback(self, mock_session):
        assert await Writer(mock_session).succeed() == 42
        mock_session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_session_keyword(self, mock_session):
        @with_rollback_on_error
        async def write(session):
            raise OperationalError("INSERT", {}, Exception("gone"))

        with pytest.raises(PersistenceError):
            await write(session=mock_session)

        mock_session.rollback.assert_awaited_once()


class TestTransaction:
    """Tests for the service transaction decorator."""

    @pytest.mark.asyncio
    async def test_commit_on_success(self, mock_session):
        assert await Service(mock_session).write() == "ok"
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rollback_on_failure(self, mock_session):
        with pytest.raises(PersistenceError):
            await Service(mock_session).write(fail=True)

        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commits_session_not_service_method(self, mock_session):
        assert await PropertyWriter(mock_session).write() == "ok"

        mock_session.commit.assert_awaited_once()
        mock_session.rollback.assert_not_awaited()
