"""Username value object."""

from dataclasses import dataclass

from speedcoding_identity.exceptions import InvalidUsernameError

MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 50


@dataclass(frozen=True)
class Username:
    """A trimmed username of 3 to 50 characters."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            msg = "Username must be a string"
            raise InvalidUsernameError(msg)

        trimmed = self.value.strip()
        if len(trimmed) < MIN_USERNAME_LENGTH:
            msg = f"Username must be at least {MIN_USERNAME_LENGTH} characters"
            raise InvalidUsernameError(msg)
        if len(trimmed) > MAX_USERNAME_LENGTH:
            msg = f"Username cannot exceed {MAX_USERNAME_LENGTH} characters"
            raise InvalidUsernameError(msg)

        object.__setattr__(self, "value", trimmed)

    def __str__(self) -> str:
        return self.value
