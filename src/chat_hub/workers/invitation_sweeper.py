"""Invitation sweeper: marks pending invitations past their expiry as expired."""
from __future__ import annotations

import asyncio
import logging

from chat_hub.application.uow import UnitOfWorkFactory
from chat_hub.config import settings
from chat_hub.infrastructure.db.uow import sqlalchemy_uow
from chat_hub.services import invitation_service

logger = logging.getLogger(__name__)


async def sweep_once(uow_factory: UnitOfWorkFactory = sqlalchemy_uow) -> int:
    async with uow_factory() as uow:
        expired = await invitation_service.expire_stale_invitations(uow)
    if expired:
        logger.info("Expired %d stale invitations", expired)
    return expired


async def run_invitation_sweeper() -> None:
    logger.info("Invitation sweeper started (interval=%.1fs)", settings.INVITATION_SWEEP_INTERVAL)
    while True:
        try:
            await sweep_once()
        except Exception:
            logger.exception("Invitation sweeper loop error")
        await asyncio.sleep(settings.INVITATION_SWEEP_INTERVAL)


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(run_invitation_sweeper())


if __name__ == "__main__":
    main()
