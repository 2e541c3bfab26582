"""
Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class ProfileStatus(str, Enum):
    """User profile status"""

    active = "active"
    disabled = "disabled"


class MembershipRole(str, Enum):
    """User role within a tenant"""

    owner = "owner"
    admin = "admin"
    cashier = "cashier"
    member = "member"


class DeletionStatus(str, Enum):
    """Lifecycle state of an account deletion record"""

    pending = "pending"
    restored = "restored"
    completed = "completed"


class DeletionMode(str, Enum):
    """How an account deletion was requested"""

    soft = "soft"
    immediate = "immediate"
