from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    PUBLIC_ENTITY = "PUBLIC_ENTITY"
    SUPPLIER = "SUPPLIER"
    AUDITOR = "AUDITOR"
    CITIZEN = "CITIZEN"


class UserStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class BiddingType(str, Enum):
    PREGAO = "PREGAO"
    CONCORRENCIA = "CONCORRENCIA"
    TOMADA_PRECOS = "TOMADA_PRECOS"
    CONVITE = "CONVITE"
    LEILAO = "LEILAO"
    CONCURSO = "CONCURSO"


class BiddingStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    AWARDED = "AWARDED"
    CANCELLED = "CANCELLED"


class ProposalStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


class ContractStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"
    COMPLETED = "COMPLETED"


class Permission(str, Enum):
    READ_PUBLIC_DATA = "READ_PUBLIC_DATA"
    READ_PRIVATE_DATA = "READ_PRIVATE_DATA"
    WRITE_DATA = "WRITE_DATA"
    DELETE_DATA = "DELETE_DATA"
    CREATE_BIDDING = "CREATE_BIDDING"
    EDIT_BIDDING = "EDIT_BIDDING"
    DELETE_BIDDING = "DELETE_BIDDING"
    PUBLISH_BIDDING = "PUBLISH_BIDDING"
    CANCEL_BIDDING = "CANCEL_BIDDING"
    CREATE_PROPOSAL = "CREATE_PROPOSAL"
    EDIT_PROPOSAL = "EDIT_PROPOSAL"
    DELETE_PROPOSAL = "DELETE_PROPOSAL"
    SUBMIT_PROPOSAL = "SUBMIT_PROPOSAL"
    CREATE_CONTRACT = "CREATE_CONTRACT"
    EDIT_CONTRACT = "EDIT_CONTRACT"
    SIGN_CONTRACT = "SIGN_CONTRACT"
    TERMINATE_CONTRACT = "TERMINATE_CONTRACT"
    MANAGE_USERS = "MANAGE_USERS"
    MANAGE_SYSTEM = "MANAGE_SYSTEM"
    VIEW_AUDIT_LOGS = "VIEW_AUDIT_LOGS"
    MANAGE_CATEGORIES = "MANAGE_CATEGORIES"
    GENERATE_REPORTS = "GENERATE_REPORTS"
    EXPORT_DATA = "EXPORT_DATA"
