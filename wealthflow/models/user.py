"""User identity returned by the auth providers."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserIdentity(BaseModel):
    """The signed-in user. All records are scoped by this id."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(..., min_length=1)
    email: str = Field(default="")
    display_name: str = Field(default="")

    @classmethod
    def build(cls, user_id: str, email: str, display_name: Optional[str]) -> "UserIdentity":
        """
        Create an identity, falling back to the email's local part
        and then to "User" when no display name was given.
        """
        name = (display_name or "").strip()
        if not name and email:
            name = email.split("@")[0]
        return cls(id=user_id, email=email, display_name=name or "User")
