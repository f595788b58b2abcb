"""Member identity as resolved from the member directory."""

from pydantic import BaseModel


class MemberProfile(BaseModel):
    member_id: str
    email_address: str
    full_name: str | None = None
    country: str | None = None


__all__ = ["MemberProfile"]
