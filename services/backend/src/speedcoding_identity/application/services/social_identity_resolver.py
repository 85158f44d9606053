"""Mapping of OAuth profiles to local accounts."""

import logging
import re

from speedcoding_auth.schemas import TokenPair
from speedcoding_auth.services import generate_token
from speedcoding_identity.application.services.password_credentials_service import (
    PasswordCredentialsService,
)
from speedcoding_identity.application.services.token_issuer import TokenIssuer
from speedcoding_identity.domain.user import (
    MAX_USERNAME_LENGTH,
    Email,
    NewUser,
    SocialProfile,
    User,
)
from speedcoding_identity.exceptions import SocialAuthError
from speedcoding_identity.repositories import CredentialStore

logger = logging.getLogger(__name__)

FALLBACK_USERNAME = "user"

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


def _slug(value: str | None) -> str:
    return _NON_ALPHANUMERIC.sub("", (value or "").lower())


def synthesize_username(profile: SocialProfile, email: Email) -> str:
    """Derive a username candidate from a social profile.

    Preference order: the provider's own username, first name plus the
    initial of the last name, first name alone, the email local part.
    Collisions are resolved by the credential store.
    """
    if profile.username and profile.username.strip():
        candidate = profile.username.strip()
    else:
        first = _slug(profile.first_name)
        last = _slug(profile.last_name)
        if first and last:
            candidate = f"{first}{last[0]}"
        elif first:
            candidate = first
        else:
            candidate = _slug(email.local_part)

    return candidate[:MAX_USERNAME_LENGTH] or FALLBACK_USERNAME


class SocialIdentityResolver:
    """Resolves an OAuth profile to a local user and logs that user in.

    Lookup order is the (provider, provider_id) link first, then the email
    address, so an existing password account gets linked rather than
    duplicated. Unknown identities get a new, already verified account.
    """

    def __init__(
        self,
        store: CredentialStore,
        credentials: PasswordCredentialsService,
        token_issuer: TokenIssuer,
    ):
        self._store = store
        self._credentials = credentials
        self._token_issuer = token_issuer

    async def social_login(self, profile: SocialProfile) -> TokenPair:
        """Resolve or create the user behind ``profile`` and issue tokens.

        Everything happens in one transaction; on failure nothing is kept.

        Raises
        ------
        SocialAuthError
            On any failure, chained to the underlying cause
        """
        try:
            if not profile.email:
                msg = f"{profile.provider} profile does not include an email address"
                raise SocialAuthError(msg)
            email = Email(profile.email)

            async def _login(tx: CredentialStore) -> TokenPair:
                user = await self.resolve_user(profile, email, tx)
                return await self._token_issuer.issue_tokens(user, store=tx)

            return await self._store.run_in_transaction(_login)
        except SocialAuthError:
            raise
        except Exception as e:
            logger.warning("Social login via %s failed: %s", profile.provider, e)
            raise SocialAuthError(f"Failed to process social login: {e}") from e

    async def resolve_user(
        self,
        profile: SocialProfile,
        email: Email,
        store: CredentialStore,
    ) -> User:
        """Find, link or create the local user for ``profile``."""
        user = await store.find_user_by_social_connection(
            profile.provider,
            profile.provider_id,
        )
        if user is None:
            user = await store.find_user_by_email(email.value)

        if user is None:
            return await self._create_user(profile, email, store)

        await self._ensure_linked(user, profile, store)
        return await self._backfill_profile(user, profile, store)

    async def _ensure_linked(
        self,
        user: User,
        profile: SocialProfile,
        store: CredentialStore,
    ) -> None:
        connection = await store.find_user_social_connection(user.id, profile.provider)
        if connection is None:
            await store.create_social_connection(
                user.id,
                profile.provider,
                profile.provider_id,
            )
            return
        if connection.provider_id != profile.provider_id:
            msg = f"Account is already linked to a different {profile.provider} identity"
            raise SocialAuthError(msg)

    async def _backfill_profile(
        self,
        user: User,
        profile: SocialProfile,
        store: CredentialStore,
    ) -> User:
        if user.avatar_url or not profile.avatar_url:
            return user
        return await store.update_user(
            user.id,
            avatar_url=profile.avatar_url,
            display_name=user.display_name or profile.display_name or None,
        )

    async def _create_user(
        self,
        profile: SocialProfile,
        email: Email,
        store: CredentialStore,
    ) -> User:
        username = synthesize_username(profile, email)
        # Never used to log in, but every account carries a password hash
        password_hash = await self._credentials.hash_password(generate_token())
        new_user = NewUser(
            username=username,
            email=email.value,
            password_hash=password_hash,
            is_email_verified=True,
            display_name=profile.display_name or username,
            avatar_url=profile.avatar_url,
        )
        return await store.create_user_with_social_connection(
            new_user,
            profile.provider,
            profile.provider_id,
        )
