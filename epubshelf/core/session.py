from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SessionContext:
    user_id: Optional[str] = None
    access_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls()
