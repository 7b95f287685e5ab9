"""
Database decorators for automatic error handling and rollback.

Provides a decorator that rolls back the session of a store-backed
object when a unit of work fails, and converts database errors into
PersistenceError.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_manager.utils.exceptions import PersistenceError


T = TypeVar("T")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession | None:
    """Locate the session in call arguments or on the bound instance."""
    session = kwargs.get("session")
    if session is not None:
        return session

    if args:
        first = args[0]
        if isinstance(first, AsyncSession):
            return first
        # Bound method: look for self.session
        candidate = getattr(first, "session", None)
        if candidate is not None:
            return candidate

    return None


def with_rollback_on_error(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Decorator that rolls back the session on any exception.

    Usage:
        class Ledger:
            @with_rollback_on_error
            async def commit(self, preview):
                ...

    The decorator will:
    1. Execute the wrapped coroutine
    2. If an exception occurs, call session.rollback()
    3. Re-raise SQLAlchemy errors as PersistenceError, others unchanged

    Args:
        func: Async function to wrap. The session is taken from the
              'session' keyword, a first positional AsyncSession, or
              the 'session' attribute of the bound instance.

    Returns:
        Wrapped function with automatic rollback on error
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_rollback_on_error "
                f"but no session found. Rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            try:
                await session.rollback()
                logger.info(
                    f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
                )
            except SQLAlchemyError as rollback_error:
                logger.error(
                    f"Failed to rollback in {func.__name__}: {rollback_error}",
                    exc_info=True
                )

            if isinstance(e, SQLAlchemyError):
                raise PersistenceError.from_exception(e, func.__name__) from e
            raise

    return wrapper
