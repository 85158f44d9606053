"""Account lifecycle operations exposed to the HTTP layer."""

from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from speedcoding_auth.clock import Clock, utc_now
from speedcoding_auth.schemas import TokenPair
from speedcoding_auth.services import JWTService, PasswordHashingService
from speedcoding_identity.application.ports import MailSender
from speedcoding_identity.application.services.password_credentials_service import (
    PasswordCredentialsService,
)
from speedcoding_identity.application.services.social_identity_resolver import (
    SocialIdentityResolver,
)
from speedcoding_identity.application.services.token_issuer import TokenIssuer
from speedcoding_identity.config import AuthConfig
from speedcoding_identity.domain.user import (
    Email,
    NewUser,
    SocialProfile,
    User,
    UserProfile,
    Username,
)
from speedcoding_identity.exceptions import (
    AlreadyVerifiedError,
    ConflictError,
    DuplicateRecordError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidTokenError,
    MailDeliveryError,
    NotFoundError,
)
from speedcoding_identity.repositories import CredentialStore

logger = logging.getLogger(__name__)


class CredentialLifecycleService:
    """Coordinates registration, login, sessions and account recovery.

    Each operation either returns a ``TokenPair`` (or a profile) or raises
    one of the ``speedcoding_identity.exceptions`` types.

    Examples
    --------
    >>> service = CredentialLifecycleService.from_config(config, store, mailer)
    >>> tokens = await service.register("alice", "alice@x.com", "secret1")
    >>> tokens = await service.refresh_tokens(tokens.refresh_token)
    """

    def __init__(  # noqa: PLR0913
        self,
        store: CredentialStore,
        credentials: PasswordCredentialsService,
        token_issuer: TokenIssuer,
        social_resolver: SocialIdentityResolver,
        mail_sender: MailSender,
        frontend_base_url: str,
    ):
        self._store = store
        self._credentials = credentials
        self._token_issuer = token_issuer
        self._social_resolver = social_resolver
        self._mail_sender = mail_sender
        self._frontend_base_url = frontend_base_url.rstrip("/")
        self._mail_tasks: set[asyncio.Task[None]] = set()

    @classmethod
    def from_config(
        cls,
        config: AuthConfig,
        store: CredentialStore,
        mail_sender: MailSender,
        clock: Clock = utc_now,
    ) -> CredentialLifecycleService:
        """Wire the service and its collaborators from explicit configuration."""
        credentials = PasswordCredentialsService(
            store=store,
            password_service=PasswordHashingService(rounds=config.bcrypt_rounds),
            verification_token_ttl=config.verification_token_ttl,
            reset_token_ttl=config.reset_token_ttl,
            clock=clock,
        )
        token_issuer = TokenIssuer(
            store=store,
            jwt_service=JWTService(
                access_secret_key=config.access_secret_key,
                refresh_secret_key=config.refresh_secret_key,
                access_token_ttl=config.access_token_ttl,
                refresh_token_ttl=config.refresh_token_ttl,
                clock=clock,
            ),
            clock=clock,
        )
        return cls(
            store=store,
            credentials=credentials,
            token_issuer=token_issuer,
            social_resolver=SocialIdentityResolver(store, credentials, token_issuer),
            mail_sender=mail_sender,
            frontend_base_url=config.frontend_base_url,
        )

    @property
    def token_issuer(self) -> TokenIssuer:
        return self._token_issuer

    async def register(self, username: str, email: str, password: str) -> TokenPair:
        """Create an account, mail a verification link and log the user in.

        Raises
        ------
        InvalidEmailError
            If the email address is malformed
        InvalidUsernameError
            If the username is not 3 to 50 characters long
        WeakPasswordError
            If the password does not meet the policy
        ConflictError
            If the email or username is taken (``.field`` tells which)
        MailDeliveryError
            If the verification email could not be sent; no account is kept
        """
        email_value = Email(email).value
        username = Username(username).value
        password_hash = await self._credentials.hash_password(password)

        async def _register(tx: CredentialStore) -> tuple[User, TokenPair]:
            if await tx.find_user_by_email(email_value) is not None:
                raise ConflictError("email", "Email already exists")
            if await tx.find_user_by_username(username) is not None:
                raise ConflictError("username", "Username already exists")

            try:
                user = await tx.create_user(
                    NewUser(
                        username=username,
                        email=email_value,
                        password_hash=password_hash,
                    )
                )
            except DuplicateRecordError as e:
                field = "email" if "email" in str(e.__cause__).lower() else "username"
                raise ConflictError(field) from e

            token = await self._credentials.generate_verification_token(user.id, store=tx)
            tokens = await self._token_issuer.issue_tokens(user, store=tx)
            await self._send_verification_email(user, token)
            return user, tokens

        user, tokens = await self._store.run_in_transaction(_register)
        logger.info("Registered user %s (username: %s)", user.id, user.username)
        return tokens

    async def login(self, email: str, password: str) -> TokenPair:
        """Log in with email and password.

        Raises
        ------
        InvalidCredentialsError
            If the account does not exist or the password is wrong
        """
        try:
            email_value = Email(email).value
        except InvalidEmailError:
            email_value = None

        user = None
        if email_value is not None:
            user = await self._store.find_user_by_email(email_value)

        if user is None:
            await self._credentials.verify_dummy_password(password)
            logger.debug("Login failed: unknown email")
            raise InvalidCredentialsError

        if not await self._credentials.verify_password(password, user.password_hash):
            logger.debug("Login failed: wrong password for user %s", user.id)
            raise InvalidCredentialsError

        tokens = await self._token_issuer.issue_tokens(user)
        logger.info("User %s logged in", user.id)
        return tokens

    async def logout(self, refresh_token: str) -> None:
        """Revoke the presented refresh token only."""
        await self._token_issuer.revoke_refresh_token(refresh_token)
        logger.debug("Refresh token revoked on logout")

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """Rotate a refresh token into a new pair.

        Raises
        ------
        InvalidTokenError
            If the token is not usable
        """
        return await self._token_issuer.rotate_refresh_token(refresh_token)

    async def verify_email(self, token: str) -> None:
        """Confirm an email address with a mailed token.

        Raises
        ------
        NotFoundError
            If the token is unknown or was already used
        TokenExpiredError
            If the token is past its expiry
        """
        await self._credentials.verify_email(token)

    async def resend_verification_email(self, email: str) -> None:
        """Issue a new verification token and mail it.

        Raises
        ------
        NotFoundError
            If no account uses the address
        AlreadyVerifiedError
            If the account is already verified
        MailDeliveryError
            If the email could not be sent; the previous token stays valid
        """
        email_value = Email(email).value

        async def _resend(tx: CredentialStore) -> None:
            user = await tx.find_user_by_email(email_value)
            if user is None:
                raise NotFoundError("User not found")
            if user.is_email_verified:
                raise AlreadyVerifiedError
            token = await self._credentials.generate_verification_token(user.id, store=tx)
            await self._send_verification_email(user, token)

        await self._store.run_in_transaction(_resend)

    async def request_password_reset(self, email: str) -> None:
        """Mail a password reset link if the address belongs to an account.

        Returns normally whether or not the account exists. The mail is
        delivered in the background, so a known address does not take
        longer to answer than an unknown one.
        """
        try:
            email_value = Email(email).value
        except InvalidEmailError:
            logger.debug("Password reset requested for malformed email")
            return

        async def _issue(tx: CredentialStore):
            try:
                return await self._credentials.generate_password_reset_token(
                    email_value,
                    store=tx,
                )
            except NotFoundError:
                return None

        issued = await self._store.run_in_transaction(_issue)
        if issued is None:
            # Silent to prevent email enumeration
            logger.debug("Password reset requested for unknown email")
            return

        user = issued.user
        reset_link = f"{self._frontend_base_url}/reset-password?token={issued.token}"

        async def _send() -> None:
            try:
                await self._mail_sender.send_password_reset_email(
                    to_email=user.email,
                    username=user.username,
                    reset_link=reset_link,
                )
                logger.info("Password reset email sent for user %s", user.id)
            except MailDeliveryError as e:
                logger.error("Failed to send password reset email to user %s: %s", user.id, e)

        # Fire-and-forget; the set keeps a strong reference until it finishes
        task = asyncio.create_task(_send())
        self._mail_tasks.add(task)
        task.add_done_callback(self._mail_tasks.discard)

    async def wait_for_pending_mail(self) -> None:
        """Wait until background password reset emails have been handed off."""
        if self._mail_tasks:
            await asyncio.gather(*self._mail_tasks, return_exceptions=True)

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password and end every session of the user.

        Raises
        ------
        WeakPasswordError
            If the new password does not meet the policy
        NotFoundError
            If the token is unknown or was already used
        TokenExpiredError
            If the token is past its expiry
        """
        await self._credentials.reset_password(token, new_password)

    async def social_login(self, profile: SocialProfile) -> TokenPair:
        """Log in (or sign up) with a verified OAuth profile.

        Raises
        ------
        SocialAuthError
            On any failure
        """
        return await self._social_resolver.social_login(profile)

    async def get_profile(self, user_id: UUID) -> UserProfile:
        """Return the public profile of a user.

        Raises
        ------
        NotFoundError
            If the user does not exist
        """
        user = await self._store.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user.to_profile()

    async def authenticate(
        self,
        access_token: str,
        require_verified_email: bool = False,
    ) -> UserProfile:
        """Resolve an access token to the profile of its (still existing) user.

        Raises
        ------
        InvalidTokenError
            If the token is invalid or expired, or the user no longer exists
        EmailNotVerifiedError
            If ``require_verified_email`` is set and the user is unverified
        """
        payload = self._token_issuer.verify_access_token(access_token)
        user = await self._store.find_user_by_id(payload.user_id)
        if user is None:
            raise InvalidTokenError("User no longer exists")
        if require_verified_email and not user.is_email_verified:
            raise EmailNotVerifiedError
        return user.to_profile()

    async def _send_verification_email(self, user: User, token: str) -> None:
        verification_link = f"{self._frontend_base_url}/verify-email?token={token}"
        try:
            await self._mail_sender.send_verification_email(
                to_email=user.email,
                username=user.username,
                verification_link=verification_link,
            )
        except MailDeliveryError as e:
            logger.error("Failed to send verification email to user %s: %s", user.id, e)
            raise
