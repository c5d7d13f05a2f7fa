"""Import all models so Alembic can discover them via Base.metadata."""
from chat_hub.infrastructure.db.models.chat_request import ChatRequestModel
from chat_hub.infrastructure.db.models.conversation import ConversationModel
from chat_hub.infrastructure.db.models.invitation import InvitationModel
from chat_hub.infrastructure.db.models.message import MessageModel
from chat_hub.infrastructure.db.models.participant import ParticipantModel
from chat_hub.infrastructure.db.models.user import UserModel

__all__ = [
    "ChatRequestModel",
    "ConversationModel",
    "InvitationModel",
    "MessageModel",
    "ParticipantModel",
    "UserModel",
]
