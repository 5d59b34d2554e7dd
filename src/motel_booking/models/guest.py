"""Guest record as exposed by the guest directory."""

from pydantic import BaseModel


class Guest(BaseModel):
    guest_id: str
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
