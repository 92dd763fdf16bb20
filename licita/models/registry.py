# Импорт всех моделей, чтобы Base.metadata знала обо всех таблицах
from licita.models.base import Base
from licita.models.users import User, PublicEntity, Supplier, UserSession
from licita.models.permissions import UserPermission
from licita.models.biddings import Bidding
from licita.models.proposals import Proposal, ProposalItem
from licita.models.contracts import Contract
from licita.models.notifications import Notification

__all__ = [
    "Base",
    "User",
    "PublicEntity",
    "Supplier",
    "UserSession",
    "UserPermission",
    "Bidding",
    "Proposal",
    "ProposalItem",
    "Contract",
    "Notification",
]
