"""Email value object."""

import re
from dataclasses import dataclass

from speedcoding_identity.exceptions import InvalidEmailError

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_EMAIL_LENGTH = 255


@dataclass(frozen=True)
class Email:
    """A normalized (trimmed, lowercased) and format-checked email address."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            msg = "Email must be a string"
            raise InvalidEmailError(msg)

        normalized = self.value.strip().lower()
        if not normalized:
            msg = "Email cannot be empty"
            raise InvalidEmailError(msg)
        if len(normalized) > MAX_EMAIL_LENGTH:
            msg = f"Email cannot exceed {MAX_EMAIL_LENGTH} characters"
            raise InvalidEmailError(msg)
        if not _EMAIL_PATTERN.match(normalized):
            msg = f"Invalid email format: {normalized}"
            raise InvalidEmailError(msg)

        object.__setattr__(self, "value", normalized)

    @property
    def local_part(self) -> str:
        return self.value.split("@", 1)[0]

    @property
    def domain(self) -> str:
        return self.value.split("@", 1)[1]

    def __str__(self) -> str:
        return self.value
