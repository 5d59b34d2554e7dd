"""Guest directory lookups.

Guest profiles are managed elsewhere; the engine only checks that a guest
exists before booking.
"""

from typing import TYPE_CHECKING

from motel_booking.models import Guest

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


class GuestDirectory:
    TABLE = "guests"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get_guest(self, guest_id: str) -> Guest | None:
        item = self.db.get_item(self.TABLE, {"guest_id": guest_id})
        return Guest.model_validate(item) if item else None
