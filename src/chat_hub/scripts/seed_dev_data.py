"""Seed development data: users, a one-to-one conversation and a group."""
from __future__ import annotations

import asyncio
import logging

from chat_hub.application.dto.conversation import CreateGroupDTO
from chat_hub.application.dto.principal import Principal
from chat_hub.domain.value_objects.enums import GroupVisibility, MessageType
from chat_hub.infrastructure.db.models.user import UserModel
from chat_hub.infrastructure.db.session import AsyncSessionLocal
from chat_hub.infrastructure.db.uow import SqlAlchemyUoW
from chat_hub.services import conversation_service, message_service

logger = logging.getLogger(__name__)

USERS = [
    (1, "alice"),
    (2, "bob"),
    (3, "carol"),
    (4, "dave"),
]


async def seed() -> None:
    async with AsyncSessionLocal() as session:
        for user_id, username in USERS:
            await session.merge(UserModel(id=user_id, username=username, is_online=False))
        await session.commit()

        uow = SqlAlchemyUoW(session)
        alice, bob = Principal(user_id=1), Principal(user_id=2)

        direct = await conversation_service.get_or_create_one_to_one(alice, bob.user_id, uow)
        for sender, content in [
            (alice, "Hi Bob!"),
            (bob, "Hey Alice, how are you?"),
            (alice, "Great, thanks. Joining the book club later?"),
        ]:
            await message_service.send_message(direct.id, sender, content, MessageType.TEXT, uow)

        created = await conversation_service.create_group(
            alice,
            CreateGroupDTO(
                group_name="Book Club",
                participant_ids=[2, 3],
                group_description="Monthly reads and discussion",
                group_type=GroupVisibility.PUBLIC,
            ),
            uow,
        )
        await message_service.send_message(
            created.conversation.id, alice, "Welcome everyone!", MessageType.TEXT, uow,
        )
        logger.info(
            "Seeded %d users, conversation %s and group %s",
            len(USERS), direct.id, created.conversation.id,
        )


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
