"""
Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    DeletionMode,
    DeletionStatus,
    MembershipRole,
    ProfileStatus,
)

# Export all entities
from .tenant import Tenant
from .membership import TenantMembership
from .user_profile import UserProfile
from .app_setting import AppSetting
from .subscription import UserSubscription
from .promotion import UserPromotion
from .location import Location
from .sale import Sale
from .expense import Expense
from .account_deletion import AccountDeletion
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "DeletionMode",
    "DeletionStatus",
    "MembershipRole",
    "ProfileStatus",
    # Entities
    "Tenant",
    "TenantMembership",
    "UserProfile",
    "AppSetting",
    "UserSubscription",
    "UserPromotion",
    "Location",
    "Sale",
    "Expense",
    "AccountDeletion",
    "AuditEvent",
]
