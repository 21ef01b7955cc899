from dataclasses import dataclass
from typing import Optional


class TokenError(ValueError):
    pass


@dataclass(frozen=True)
class CustomerIdentity:
    user_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    full_name: Optional[str] = None
