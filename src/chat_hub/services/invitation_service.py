from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime, timedelta, timezone

from chat_hub.application.dto.conversation import InvitationAccepted
from chat_hub.application.dto.principal import Principal
from chat_hub.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from chat_hub.application.policies.permissions import assert_capacity, assert_group
from chat_hub.application.uow import UnitOfWork
from chat_hub.config import settings
from chat_hub.domain.entities.invitation import Invitation
from chat_hub.domain.value_objects.enums import InvitationStatus
from chat_hub.services import conversation_service


async def invite_to_group(
    conversation_id: uuid.UUID,
    user_ids: list[int],
    principal: Principal,
    uow: UnitOfWork,
) -> list[Invitation]:
    """Invite users to a group.

    Users who are already members are skipped; inviting nobody but members
    is an error. A pending invitation for the same user is returned as-is
    instead of creating a second one.
    """
    conversation = assert_group(
        await uow.conversations.get_by_id(conversation_id),
        "Invitations are only available for groups",
    )
    if not conversation.has_participant(principal.user_id):
        raise ForbiddenError("You are not a member of this group")
    if not conversation.is_admin(principal.user_id) and not conversation.settings.allow_member_invites:
        raise ForbiddenError("Only admins can invite members to this group")

    new_ids = [
        uid for uid in dict.fromkeys(user_ids)
        if not conversation.has_participant(uid)
    ]
    if not new_ids:
        raise ValidationError("All users are already members")
    assert_capacity(conversation, incoming=len(new_ids))

    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(days=settings.INVITATION_TTL_DAYS)
    invitations: list[Invitation] = []
    for uid in new_ids:
        existing = await uow.invitations.find_pending(conversation_id, uid)
        if existing is not None:
            invitations.append(existing)
            continue
        invitations.append(
            await uow.invitations.create(
                Invitation(
                    id=uuid.uuid4(),
                    conversation_id=conversation_id,
                    invited_by=principal.user_id,
                    invited_user=uid,
                    status=InvitationStatus.PENDING.value,
                    expires_at=expires_at,
                    created_at=now,
                    updated_at=now,
                )
            )
        )
    await uow.commit()
    return invitations


async def _get_own_pending(
    invitation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> Invitation:
    invitation = await uow.invitations.get_by_id(invitation_id)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if invitation.invited_user != principal.user_id:
        raise ForbiddenError("This invitation is not for you")
    if invitation.status != InvitationStatus.PENDING:
        raise ValidationError("Invitation is no longer valid")
    return invitation


async def accept_invitation(
    invitation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> InvitationAccepted:
    invitation = await _get_own_pending(invitation_id, principal, uow)

    if invitation.is_expired(datetime.now(timezone.utc)):
        await uow.invitations.transition(
            invitation_id,
            from_status=InvitationStatus.PENDING,
            to_status=InvitationStatus.EXPIRED,
        )
        await uow.commit()
        raise ValidationError("Invitation has expired")

    conversation = assert_group(
        await uow.conversations.get_by_id(invitation.conversation_id),
        "Invitations are only available for groups",
    )
    assert_capacity(conversation)

    moved = await uow.invitations.transition(
        invitation_id,
        from_status=InvitationStatus.PENDING,
        to_status=InvitationStatus.ACCEPTED,
    )
    if not moved:
        raise ValidationError("Invitation is no longer valid")

    change = await conversation_service.admit_member(
        invitation.conversation_id, principal.user_id, principal.user_id, uow,
    )
    return InvitationAccepted(
        invitation=dataclasses.replace(invitation, status=InvitationStatus.ACCEPTED.value),
        change=change,
    )


async def decline_invitation(
    invitation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> Invitation:
    invitation = await _get_own_pending(invitation_id, principal, uow)
    moved = await uow.invitations.transition(
        invitation_id,
        from_status=InvitationStatus.PENDING,
        to_status=InvitationStatus.REJECTED,
    )
    if not moved:
        raise ValidationError("Invitation is no longer valid")
    await uow.commit()
    return dataclasses.replace(invitation, status=InvitationStatus.REJECTED.value)


async def list_pending_invitations(
    principal: Principal,
    uow: UnitOfWork,
) -> list[Invitation]:
    return await uow.invitations.list_pending_for_user(
        principal.user_id, datetime.now(timezone.utc),
    )


async def expire_stale_invitations(uow: UnitOfWork, now: datetime | None = None) -> int:
    expired = await uow.invitations.expire_stale(now or datetime.now(timezone.utc))
    await uow.commit()
    return expired
