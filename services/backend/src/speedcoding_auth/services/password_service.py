"""bcrypt password hashing and the password policy."""

import asyncio

import bcrypt

from speedcoding_auth.exceptions import WeakPasswordError


class PasswordHashingService:
    """Hashes and checks passwords with bcrypt.

    bcrypt is deliberately slow and CPU-bound, so code running on the event
    loop should call the ``*_async`` variants, which hand the work to a
    thread.

    Examples
    --------
    >>> service = PasswordHashingService(rounds=4)
    >>> digest = service.hash("secret1")
    >>> service.verify("secret1", digest)
    True
    """

    MIN_LENGTH = 6
    # bcrypt silently ignores input beyond 72 bytes
    MAX_BYTES = 72

    DEFAULT_ROUNDS = 10

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        """
        Parameters
        ----------
        rounds
            bcrypt cost factor (log2 of the iteration count)
        """
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        """Return the bcrypt hash of ``password``.

        Raises
        ------
        WeakPasswordError
            If the password breaks the policy
        """
        self.validate_strength(password)
        digest = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(self._rounds))
        return digest.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check ``password`` against a stored hash.

        Malformed hashes and oversized input never match.
        """
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    async def hash_async(self, password: str) -> str:
        # Policy errors are raised before a thread is used
        self.validate_strength(password)
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self.verify, password, password_hash)

    def validate_strength(self, password: str) -> None:
        """Enforce the password policy.

        A password needs at least ``MIN_LENGTH`` characters and at most
        ``MAX_BYTES`` bytes in UTF-8.

        Raises
        ------
        WeakPasswordError
            Naming the rule that was broken
        """
        if not password:
            raise WeakPasswordError("Password cannot be empty")
        if len(password) < self.MIN_LENGTH:
            raise WeakPasswordError(
                f"Password must be at least {self.MIN_LENGTH} characters"
            )
        if len(password.encode("utf-8")) > self.MAX_BYTES:
            raise WeakPasswordError(f"Password cannot exceed {self.MAX_BYTES} bytes")
