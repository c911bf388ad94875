from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    VOTER = "voter"
    PENDING = "pending"


class Caller(BaseModel):
    """The account a request acts on behalf of, resolved from the identity store."""

    id: str
    role: Role
    organization_id: Optional[str] = None

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles
