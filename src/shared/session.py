"""Authenticated principal passed explicitly into every workflow call."""

from dataclasses import dataclass
from enum import Enum

from shared.errors import NotAuthenticatedError, ValidationError


class Role(Enum):
    BUYER = "buyer"
    SELLER = "seller"


@dataclass(frozen=True)
class Session:
    """The caller on whose behalf a workflow operation runs.

    The id is used as the default scoping filter (``buyer_id`` / ``seller_id``)
    when reading and writing rows. Authorization itself is the store's job.
    """

    user_id: str | None
    role: Role = Role.BUYER

    @classmethod
    def anonymous(cls) -> "Session":
        return cls(user_id=None)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    def require_user(self) -> str:
        """Return the principal id or raise if the session is anonymous."""
        if not self.is_authenticated:
            raise NotAuthenticatedError()
        return self.user_id


def parse_role(value: Role | str | None, default: Role = Role.BUYER) -> Role:
    """Coerce a raw role value; ``None`` falls back to ``default``."""
    if value is None or value == "":
        return default
    try:
        return Role(value)
    except ValueError:
        allowed = ", ".join(role.value for role in Role)
        raise ValidationError({"role": [f"Unknown role {value!r}; expected one of {allowed}"]}) from None
