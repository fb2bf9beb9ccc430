"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

Storage and identity backends are chosen by settings: Supabase in
deployments, in-memory implementations for development and tests.
"""

from datetime import timedelta
from typing import TYPE_CHECKING, Any

from shared.config import Settings, get_settings

# Type checking imports (avoids circular imports with the route modules)
if TYPE_CHECKING:
    from modules.audit.service import AuditLogger
    from modules.audit.store import IAuditStore
    from modules.auth.interfaces import IProfileRepository
    from modules.auth.service import AuthService
    from modules.families.interfaces import IFamilyRepository
    from modules.families.service import FamilyService
    from modules.identity.interfaces import IIdentityProvider
    from modules.notifications.interfaces import IEmailSender
    from modules.ratelimit.interfaces import IAttemptStore
    from modules.ratelimit.service import RateLimiter
    from modules.recovery.interfaces import IRecoveryRepository
    from modules.recovery.service import RecoveryService
    from modules.tokens.service import TokenService
    from modules.verification.service import VerificationService


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached as singletons
    within the container. Tests may assign replacements to the private
    attributes before first access, or call reset() to start over.
    """

    def __init__(self, settings: "Settings | None" = None) -> None:
        self._settings = settings
        self._db: Any = None
        self._identity: "IIdentityProvider | None" = None
        self._email: "IEmailSender | None" = None
        self._audit_store: "IAuditStore | None" = None
        self._attempt_store: "IAttemptStore | None" = None
        self._profile_repository: "IProfileRepository | None" = None
        self._family_repository: "IFamilyRepository | None" = None
        self._recovery_repository: "IRecoveryRepository | None" = None
        self._audit: "AuditLogger | None" = None
        self._rate_limiter: "RateLimiter | None" = None
        self._tokens: "TokenService | None" = None
        self._verifications: "VerificationService | None" = None
        self._families: "FamilyService | None" = None
        self._recovery: "RecoveryService | None" = None
        self._auth: "AuthService | None" = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def uses_memory_storage(self) -> bool:
        return self.settings.storage_backend == "memory"

    @property
    def db(self) -> Any:
        """Service-role Supabase client shared by all Supabase repositories."""
        if self._db is None:
            from shared.database import get_supabase_client
            self._db = get_supabase_client()
        return self._db

    # -------------------------------------------------------------------------
    # Backends
    # -------------------------------------------------------------------------

    @property
    def identity(self) -> "IIdentityProvider":
        """Get the identity provider."""
        if self._identity is None:
            if self.settings.identity_backend == "memory":
                from modules.identity.service import MemoryIdentityProvider
                self._identity = MemoryIdentityProvider(self.settings.supabase_jwt_secret or None)
            else:
                from modules.identity.service import SupabaseIdentityProvider
                from shared.database import get_supabase_anon_client
                self._identity = SupabaseIdentityProvider(self.db, get_supabase_anon_client)
        return self._identity

    @property
    def email(self) -> "IEmailSender":
        """Get the email sender."""
        if self._email is None:
            settings = self.settings
            if settings.email_backend == "relay":
                from modules.notifications.service import RelayEmailSender
                self._email = RelayEmailSender(
                    settings.app_url,
                    relay_url=settings.email_relay_url,
                    api_key=settings.email_relay_api_key,
                    from_address=settings.email_from_address,
                    timeout=settings.email_relay_timeout,
                )
            else:
                from modules.notifications.service import ConsoleEmailSender
                self._email = ConsoleEmailSender(settings.app_url, log_bodies=settings.debug)
        return self._email

    @property
    def audit_store(self) -> "IAuditStore":
        if self._audit_store is None:
            if self.uses_memory_storage:
                from modules.audit.store import MemoryAuditStore
                self._audit_store = MemoryAuditStore()
            else:
                from modules.audit.store import SupabaseAuditStore
                self._audit_store = SupabaseAuditStore(self.db)
        return self._audit_store

    @property
    def attempt_store(self) -> "IAttemptStore":
        if self._attempt_store is None:
            if self.uses_memory_storage:
                from modules.ratelimit.store import MemoryAttemptStore
                self._attempt_store = MemoryAttemptStore()
            else:
                from modules.ratelimit.store import SupabaseAttemptStore
                self._attempt_store = SupabaseAttemptStore(self.db)
        return self._attempt_store

    @property
    def profile_repository(self) -> "IProfileRepository":
        if self._profile_repository is None:
            if self.uses_memory_storage:
                from modules.auth.repository import MemoryProfileRepository
                self._profile_repository = MemoryProfileRepository()
            else:
                from modules.auth.repository import SupabaseProfileRepository
                self._profile_repository = SupabaseProfileRepository(self.db)
        return self._profile_repository

    @property
    def family_repository(self) -> "IFamilyRepository":
        if self._family_repository is None:
            if self.uses_memory_storage:
                from modules.families.repository import MemoryFamilyRepository
                self._family_repository = MemoryFamilyRepository()
            else:
                from modules.families.repository import SupabaseFamilyRepository
                self._family_repository = SupabaseFamilyRepository(self.db)
        return self._family_repository

    @property
    def recovery_repository(self) -> "IRecoveryRepository":
        if self._recovery_repository is None:
            if self.uses_memory_storage:
                from modules.recovery.repository import MemoryRecoveryRepository
                self._recovery_repository = MemoryRecoveryRepository()
            else:
                from modules.recovery.repository import SupabaseRecoveryRepository
                self._recovery_repository = SupabaseRecoveryRepository(self.db)
        return self._recovery_repository

    # -------------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------------

    @property
    def audit(self) -> "AuditLogger":
        """Get the audit logger."""
        if self._audit is None:
            from modules.audit.service import AuditLogger
            self._audit = AuditLogger(self.audit_store)
        return self._audit

    @property
    def rate_limiter(self) -> "RateLimiter":
        """Get the rate limiter."""
        if self._rate_limiter is None:
            from modules.ratelimit.service import RateLimiter
            self._rate_limiter = RateLimiter(
                self.attempt_store, fail_closed=self.settings.rate_limit_fail_closed
            )
        return self._rate_limiter

    @property
    def tokens(self) -> "TokenService":
        """Get the token service."""
        if self._tokens is None:
            from modules.tokens.service import TokenService
            if self.uses_memory_storage:
                from modules.tokens.repository import MemoryTokenRepository
                self._tokens = TokenService(MemoryTokenRepository())
            else:
                from modules.tokens.repository import SupabaseTokenRepository
                self._tokens = TokenService(SupabaseTokenRepository(self.db))
        return self._tokens

    @property
    def verifications(self) -> "VerificationService":
        """Get the verification code service."""
        if self._verifications is None:
            from modules.verification.service import VerificationService
            if self.uses_memory_storage:
                from modules.verification.repository import MemoryVerificationRepository
                self._verifications = VerificationService(MemoryVerificationRepository())
            else:
                from modules.verification.repository import SupabaseVerificationRepository
                self._verifications = VerificationService(SupabaseVerificationRepository(self.db))
        return self._verifications

    @property
    def families(self) -> "FamilyService":
        """Get the family service."""
        if self._families is None:
            from modules.families.service import FamilyService
            self._families = FamilyService(
                repository=self.family_repository,
                tokens=self.tokens,
                email=self.email,
                app_url=self.settings.app_url,
                invitation_ttl=timedelta(days=self.settings.invitation_ttl_days),
            )
        return self._families

    @property
    def recovery(self) -> "RecoveryService":
        """Get the recovery service."""
        if self._recovery is None:
            from modules.recovery.service import RecoveryService
            self._recovery = RecoveryService(
                identity=self.identity,
                repository=self.recovery_repository,
                verifications=self.verifications,
                tokens=self.tokens,
                rate_limiter=self.rate_limiter,
                audit=self.audit,
                email=self.email,
                settings=self.settings,
            )
        return self._recovery

    @property
    def auth(self) -> "AuthService":
        """Get the auth service."""
        if self._auth is None:
            from modules.auth.service import AuthService
            self._auth = AuthService(
                identity=self.identity,
                profiles=self.profile_repository,
                verifications=self.verifications,
                tokens=self.tokens,
                families=self.families,
                recovery=self.recovery,
                rate_limiter=self.rate_limiter,
                audit=self.audit,
                email=self.email,
                settings=self.settings,
            )
        return self._auth

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self.__init__(self._settings)  # type: ignore[misc]


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def set_container(container: ServiceContainer) -> None:
    """Install a pre-built container (used by tests)."""
    global _container
    _container = container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() will create a fresh container with
    new service instances. Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_auth_service() -> "AuthService":
    """FastAPI dependency for auth service."""
    return get_container().auth


def get_recovery_service() -> "RecoveryService":
    """FastAPI dependency for recovery service."""
    return get_container().recovery


def get_family_service() -> "FamilyService":
    """FastAPI dependency for family service."""
    return get_container().families


def get_rate_limiter() -> "RateLimiter":
    """FastAPI dependency for the rate limiter."""
    return get_container().rate_limiter


def get_audit_logger() -> "AuditLogger":
    """FastAPI dependency for the audit logger."""
    return get_container().audit
