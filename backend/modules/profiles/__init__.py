"""
Profiles module.

Stores one profile per identity-provider subject and keeps it in step
with sessions through reconciliation.

Public API:
- IProfileReconciler / ProfileService: reconcile and administer profiles
- IProfileStore: document-store boundary (Supabase or in-memory)
- IClaimsPublisher: role claim side-channel
- ProfileRecord, ProfileFields: profile data
"""

from .interfaces import IClaimsPublisher, IProfileReconciler, IProfileStore
from .models import (
    AdminVerification,
    ProfileFields,
    ProfileListResponse,
    ProfileRecord,
    ProfileRole,
    ProfileStatus,
    ProfileWriteRequest,
)
from .service import ProfileService, merge_profile, placeholder_email
from .repository import InMemoryProfileRepository, SupabaseProfileRepository
from .claims import SupabaseClaimsPublisher
from .exceptions import (
    ProfileError,
    MissingSubjectIdError,
    MissingContactError,
    ProfileNotFoundError,
    ProfileConflictError,
    PersistenceUnavailableError,
)

__all__ = [
    # Interfaces
    "IClaimsPublisher",
    "IProfileReconciler",
    "IProfileStore",
    # Models
    "AdminVerification",
    "ProfileFields",
    "ProfileListResponse",
    "ProfileRecord",
    "ProfileRole",
    "ProfileStatus",
    "ProfileWriteRequest",
    # Implementation
    "ProfileService",
    "merge_profile",
    "placeholder_email",
    "InMemoryProfileRepository",
    "SupabaseProfileRepository",
    "SupabaseClaimsPublisher",
    # Exceptions
    "ProfileError",
    "MissingSubjectIdError",
    "MissingContactError",
    "ProfileNotFoundError",
    "ProfileConflictError",
    "PersistenceUnavailableError",
]
