from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

Role = Literal["athlete", "trainer", "admin", "service_role"]


class AuthUser(BaseModel):
    """
    Represents the authenticated caller, as issued by the identity provider.

    ``user_id`` is the actor id passed explicitly into every booking operation.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: Role = "athlete"

    @property
    def is_admin(self) -> bool:
        return self.role in ("admin", "service_role")
