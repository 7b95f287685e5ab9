#!/usr/bin/env python3
"""Initialize database tables and seed default levels."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from commission_manager.config.settings import get_settings
from commission_manager.database import (
    create_engine,
    create_session_maker,
    init_database,
    session_scope,
)
from commission_manager.models.enums import LevelScope
from commission_manager.services.commission.service import CommissionService

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def main() -> None:
    """Create all tables and seed both level scopes if empty."""
    settings = get_settings()

    logger.info("Connecting to database...")
    engine = create_engine(settings)

    try:
        await init_database(engine)

        session_maker = create_session_maker(engine)
        async with session_scope(session_maker) as session:
            service = CommissionService.from_settings(session, settings)
            for scope in LevelScope:
                levels = await service.ensure_default_levels(scope)
                logger.info(f"{scope.value}: {len(levels)} levels configured")
    finally:
        await engine.dispose()

    logger.success("Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(main())
