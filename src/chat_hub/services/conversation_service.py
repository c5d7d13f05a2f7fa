from __future__ import annotations

import uuid
from datetime import datetime, timezone

from chat_hub.application.dto.conversation import (
    CreateGroupDTO,
    GroupCreated,
    MembershipChange,
    PublicGroupsPage,
)
from chat_hub.application.dto.principal import Principal
from chat_hub.application.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from chat_hub.application.policies.permissions import (
    assert_capacity,
    assert_conversation_access,
    assert_group,
    assert_group_admin,
)
from chat_hub.application.uow import UnitOfWork
from chat_hub.config import settings
from chat_hub.domain.entities.conversation import Conversation, GroupSettings
from chat_hub.domain.entities.participant import Participant
from chat_hub.domain.value_objects.enums import (
    ConversationType,
    GroupVisibility,
    MembershipAction,
    SystemMessageType,
)
from chat_hub.services import message_service


async def _display_name(user_id: int, uow: UnitOfWork) -> str:
    user = await uow.users.get_by_id(user_id)
    return user.username if user else "A member"


async def _reload(conversation_id: uuid.UUID, uow: UnitOfWork) -> Conversation:
    conversation = await uow.conversations.get_by_id(conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    return conversation


async def get_or_create_one_to_one(
    principal: Principal,
    other_user_id: int,
    uow: UnitOfWork,
) -> Conversation:
    """Return the existing conversation between the two users, or create one."""
    if other_user_id == principal.user_id:
        raise ValidationError("Cannot start a conversation with yourself")

    existing = await uow.conversations.find_one_to_one(principal.user_id, other_user_id)
    if existing is not None:
        return existing

    now = datetime.now(timezone.utc)
    conversation_id = uuid.uuid4()
    conversation = Conversation(
        id=conversation_id,
        type=ConversationType.ONE_TO_ONE,
        group_name=None,
        group_description=None,
        group_type=GroupVisibility.PRIVATE,
        settings=GroupSettings(max_members=2),
        created_by=principal.user_id,
        last_message_id=None,
        last_message_at=None,
        created_at=now,
        updated_at=now,
        participants=tuple(
            Participant(
                conversation_id=conversation_id,
                user_id=uid,
                is_admin=False,
                unread_count=0,
                joined_at=now,
            )
            for uid in (principal.user_id, other_user_id)
        ),
    )
    conversation = await uow.conversations_w.create(conversation)
    await uow.commit()
    return conversation


async def create_group(
    principal: Principal,
    data: CreateGroupDTO,
    uow: UnitOfWork,
) -> GroupCreated:
    """Create a group with the caller as its first admin."""
    name = (data.group_name or "").strip()
    if not name:
        raise ValidationError("Group name is required")

    member_ids = list(dict.fromkeys([principal.user_id, *data.participant_ids]))
    group_settings = GroupSettings(
        max_members=(data.settings.max_members if data.settings and data.settings.max_members
                     else settings.GROUP_DEFAULT_MAX_MEMBERS),
        allow_member_invites=bool(data.settings and data.settings.allow_member_invites),
    )
    if len(member_ids) > group_settings.max_members:
        raise ValidationError(f"Group capacity exceeded. Max members: {group_settings.max_members}")

    now = datetime.now(timezone.utc)
    conversation_id = uuid.uuid4()
    conversation = Conversation(
        id=conversation_id,
        type=ConversationType.GROUP,
        group_name=name,
        group_description=data.group_description.strip() if data.group_description else None,
        group_type=data.group_type,
        settings=group_settings,
        created_by=principal.user_id,
        last_message_id=None,
        last_message_at=now,
        created_at=now,
        updated_at=now,
        participants=tuple(
            Participant(
                conversation_id=conversation_id,
                user_id=uid,
                is_admin=uid == principal.user_id,
                unread_count=0,
                joined_at=now,
            )
            for uid in member_ids
        ),
    )
    await uow.conversations_w.create(conversation)

    creator = await _display_name(principal.user_id, uow)
    system_message = await message_service.create_system_message(
        conversation_id,
        SystemMessageType.GROUP_CREATED,
        f"{creator} created the group",
        {"userId": principal.user_id},
        uow,
    )
    await uow.commit()
    return GroupCreated(conversation=await _reload(conversation_id, uow), system_message=system_message)


async def list_user_conversations(
    principal: Principal,
    uow: UnitOfWork,
) -> list[Conversation]:
    return await uow.conversations.list_for_user(principal.user_id)


async def get_conversation(
    conversation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> Conversation:
    conversation = await uow.conversations.get_by_id(conversation_id)
    return assert_conversation_access(principal.user_id, conversation)


async def add_participant(
    conversation_id: uuid.UUID,
    new_user_id: int,
    principal: Principal,
    uow: UnitOfWork,
) -> MembershipChange:
    conversation = assert_group(
        await uow.conversations.get_by_id(conversation_id),
        "Only group conversations can add participants",
    )
    assert_group_admin(conversation, principal.user_id, "Only admins can add participants")
    if conversation.has_participant(new_user_id):
        raise ConflictError("User is already a participant")
    assert_capacity(conversation)

    added = await uow.participants_w.add(
        Participant(
            conversation_id=conversation_id,
            user_id=new_user_id,
            is_admin=False,
            unread_count=0,
            joined_at=datetime.now(timezone.utc),
        )
    )
    if not added:
        raise ConflictError("User is already a participant")

    name = await _display_name(new_user_id, uow)
    system_message = await message_service.create_system_message(
        conversation_id,
        SystemMessageType.MEMBER_ADDED,
        f"{name} was added to the group",
        {"userId": new_user_id},
        uow,
    )
    await uow.commit()
    return MembershipChange(
        conversation=await _reload(conversation_id, uow),
        action=MembershipAction.ADDED,
        user_id=new_user_id,
        actor_id=principal.user_id,
        system_message=system_message,
    )


async def remove_participant(
    conversation_id: uuid.UUID,
    user_id: int,
    principal: Principal,
    uow: UnitOfWork,
) -> MembershipChange:
    conversation = assert_group(
        await uow.conversations.get_by_id(conversation_id),
        "Only group conversations can remove participants",
    )
    assert_group_admin(conversation, principal.user_id, "Only admins can remove participants")
    if user_id == principal.user_id:
        raise ValidationError("Admin cannot remove themselves. Use leave group instead.")
    if not conversation.has_participant(user_id):
        raise NotFoundError("User is not a participant")

    name = await _display_name(user_id, uow)
    await uow.participants_w.remove(conversation_id, user_id)
    system_message = await message_service.create_system_message(
        conversation_id,
        SystemMessageType.MEMBER_REMOVED,
        f"{name} was removed from the group",
        {"userId": user_id},
        uow,
    )
    await uow.commit()
    return MembershipChange(
        conversation=await _reload(conversation_id, uow),
        action=MembershipAction.REMOVED,
        user_id=user_id,
        actor_id=principal.user_id,
        system_message=system_message,
    )


async def leave_group(
    conversation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> MembershipChange:
    conversation = assert_group(
        await uow.conversations.get_by_id(conversation_id),
        "Only group conversations can be left",
    )
    if not conversation.has_participant(principal.user_id):
        raise ValidationError("You are not a member of this group")

    name = await _display_name(principal.user_id, uow)
    # Removing the membership row drops the admin role and unread counter with it.
    await uow.participants_w.remove(conversation_id, principal.user_id)
    system_message = await message_service.create_system_message(
        conversation_id,
        SystemMessageType.MEMBER_LEFT,
        f"{name} left the group",
        {"userId": principal.user_id},
        uow,
    )
    await uow.commit()
    return MembershipChange(
        conversation=await _reload(conversation_id, uow),
        action=MembershipAction.LEFT,
        user_id=principal.user_id,
        actor_id=principal.user_id,
        system_message=system_message,
    )


async def promote_to_admin(
    conversation_id: uuid.UUID,
    new_admin_id: int,
    principal: Principal,
    uow: UnitOfWork,
) -> MembershipChange:
    conversation = assert_group(
        await uow.conversations.get_by_id(conversation_id),
        "Only group conversations have admins",
    )
    assert_group_admin(conversation, principal.user_id, "Only admins can promote others")
    if not conversation.has_participant(new_admin_id):
        raise ValidationError("New admin must be a participant of the group")
    if conversation.is_admin(new_admin_id):
        raise ConflictError("User is already an admin")

    await uow.participants_w.set_admin(conversation_id, new_admin_id, True)
    name = await _display_name(new_admin_id, uow)
    system_message = await message_service.create_system_message(
        conversation_id,
        SystemMessageType.ADMIN_PROMOTED,
        f"{name} was promoted to admin",
        {"userId": new_admin_id},
        uow,
    )
    await uow.commit()
    return MembershipChange(
        conversation=await _reload(conversation_id, uow),
        action=MembershipAction.PROMOTED,
        user_id=new_admin_id,
        actor_id=principal.user_id,
        system_message=system_message,
    )


async def update_group_details(
    conversation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    *,
    group_name: str | None = None,
    group_description: str | None = None,
) -> Conversation:
    conversation = assert_group(
        await uow.conversations.get_by_id(conversation_id),
        "Only group conversations can have their details updated",
    )
    assert_group_admin(conversation, principal.user_id, "Only admins can update the group details")

    if group_name is not None:
        group_name = group_name.strip()
        if not group_name:
            raise ValidationError("Group name cannot be empty")
    if group_description is not None:
        group_description = group_description.strip()

    await uow.conversations_w.update_details(
        conversation_id,
        group_name=group_name,
        group_description=group_description,
    )
    await uow.commit()
    return await _reload(conversation_id, uow)


async def join_public_group(
    conversation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> MembershipChange:
    conversation = assert_group(
        await uow.conversations.get_by_id(conversation_id),
        "This is not a group conversation",
    )
    if conversation.group_type != GroupVisibility.PUBLIC:
        raise ForbiddenError("This group is private. You need an invitation to join")
    if conversation.settings.is_archived:
        raise ValidationError("This group is archived")
    if conversation.has_participant(principal.user_id):
        raise ConflictError("You are already a member of this group")
    if len(conversation.participants) >= conversation.settings.max_members:
        raise ValidationError("Group is at maximum capacity")

    return await admit_member(conversation_id, principal.user_id, principal.user_id, uow)


async def admit_member(
    conversation_id: uuid.UUID,
    user_id: int,
    actor_id: int,
    uow: UnitOfWork,
) -> MembershipChange:
    """Shared tail of invitation acceptance and public joins. Commits."""
    added = await uow.participants_w.add(
        Participant(
            conversation_id=conversation_id,
            user_id=user_id,
            is_admin=False,
            unread_count=0,
            joined_at=datetime.now(timezone.utc),
        )
    )
    if not added:
        raise ConflictError("You are already a member of this group")

    name = await _display_name(user_id, uow)
    system_message = await message_service.create_system_message(
        conversation_id,
        SystemMessageType.MEMBER_ADDED,
        f"{name} joined the group",
        {"userId": user_id},
        uow,
    )
    await uow.commit()
    return MembershipChange(
        conversation=await _reload(conversation_id, uow),
        action=MembershipAction.JOINED,
        user_id=user_id,
        actor_id=actor_id,
        system_message=system_message,
    )


async def delete_conversation(
    conversation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> Conversation:
    """Delete a conversation and its messages. Returns the state before deletion."""
    conversation = assert_conversation_access(
        principal.user_id, await uow.conversations.get_by_id(conversation_id),
    )
    if conversation.is_group and not conversation.is_admin(principal.user_id):
        raise ForbiddenError("Only group admin can delete the group")

    await uow.conversations_w.delete(conversation_id)
    await uow.commit()
    return conversation


async def list_public_groups(
    principal: Principal,
    uow: UnitOfWork,
    *,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> PublicGroupsPage:
    groups, total = await uow.conversations.list_public_groups(
        principal.user_id,
        search=search or None,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return PublicGroupsPage(groups=groups, total=total, page=page, limit=limit)
