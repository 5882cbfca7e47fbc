"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

Long-lived services (role gate, profile store, profile service) are
cached in the container. Identity bridges are built per request because
each one holds the session of a single end user.
"""

from typing import TYPE_CHECKING, Callable, Optional

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.interfaces import ISessionRoleGate
    from modules.challenge import SubmittedTokenChallengeHost
    from modules.identity.bridge import IdentitySessionBridge
    from modules.profiles.interfaces import IClaimsPublisher, IProfileStore
    from modules.profiles.service import ProfileService

BridgeFactory = Callable[..., "IdentitySessionBridge"]


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached as singletons
    within the container. Use reset() to clear them for testing.
    """

    def __init__(self) -> None:
        self._role_gate: "ISessionRoleGate | None" = None
        self._profile_store: "IProfileStore | None" = None
        self._claims: "IClaimsPublisher | None" = None
        self._profile_service: "ProfileService | None" = None

    @property
    def role_gate(self) -> "ISessionRoleGate":
        """Get the session role gate instance."""
        if self._role_gate is None:
            from modules.auth.service import SessionRoleGate
            self._role_gate = SessionRoleGate()
        return self._role_gate

    @property
    def profile_store(self) -> "IProfileStore":
        """Get the profile store selected by PROFILE_STORE_BACKEND."""
        if self._profile_store is None:
            from shared.config import get_settings
            settings = get_settings()
            if settings.profile_store_backend == "memory":
                from modules.profiles.repository import InMemoryProfileRepository
                self._profile_store = InMemoryProfileRepository()
            else:
                from modules.profiles.repository import SupabaseProfileRepository
                from shared.database import get_supabase_client
                self._profile_store = SupabaseProfileRepository(
                    get_supabase_client(),
                    table=settings.profiles_table,
                )
        return self._profile_store

    @property
    def claims(self) -> "Optional[IClaimsPublisher]":
        """Get the claims publisher, or None when running without Supabase."""
        if self._claims is None:
            from shared.config import get_settings
            if get_settings().profile_store_backend == "memory":
                return None
            from modules.profiles.claims import SupabaseClaimsPublisher
            from shared.database import get_supabase_client
            self._claims = SupabaseClaimsPublisher(get_supabase_client())
        return self._claims

    @property
    def profiles(self) -> "ProfileService":
        """Get the profile service instance."""
        if self._profile_service is None:
            from modules.profiles.service import ProfileService
            from shared.config import get_settings
            self._profile_service = ProfileService(
                store=self.profile_store,
                claims=self.claims,
                placeholder_domain=get_settings().placeholder_email_domain,
            )
        return self._profile_service

    def identity_bridge(
        self,
        host: "Optional[SubmittedTokenChallengeHost]" = None,
        access_token: Optional[str] = None,
    ) -> "IdentitySessionBridge":
        """
        Build an identity bridge for one request.

        With ``access_token`` the bridge acts on that user's session;
        with ``host`` it can run phone sign-in.
        """
        from supabase import AuthError
        from modules.challenge import ChallengeWidgetManager
        from modules.identity.bridge import IdentitySessionBridge
        from modules.identity.exceptions import NoActiveSessionError
        from modules.identity.supabase_provider import SupabaseIdentityProvider
        from shared.config import get_settings
        from shared.database import get_supabase_auth_client, get_supabase_user_client

        settings = get_settings()
        if access_token:
            try:
                client = get_supabase_user_client(access_token)
            except AuthError as e:
                raise NoActiveSessionError() from e
        else:
            client = get_supabase_auth_client()

        return IdentitySessionBridge(
            provider=SupabaseIdentityProvider(client, settings.otp_expiry_seconds),
            reconciler=self.profiles,
            challenges=ChallengeWidgetManager(host) if host is not None else None,
            anchor_id=settings.challenge_anchor_id,
            otp_expiry_seconds=settings.otp_expiry_seconds,
        )

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._role_gate = None
        self._profile_store = None
        self._claims = None
        self._profile_service = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_role_gate() -> "ISessionRoleGate":
    """FastAPI dependency for the session role gate."""
    return get_container().role_gate


def get_profile_service() -> "ProfileService":
    """FastAPI dependency for the profile service."""
    return get_container().profiles


def get_challenge_host() -> "SubmittedTokenChallengeHost":
    """FastAPI dependency for a per-request challenge host."""
    from modules.challenge import SubmittedTokenChallengeHost
    return SubmittedTokenChallengeHost()


def get_identity_bridge_factory() -> BridgeFactory:
    """
    FastAPI dependency returning a bridge builder.

    Call it as ``factory(host=..., access_token=...)``.
    """
    return get_container().identity_bridge
