"""Read-only inventory catalog backed by DynamoDB."""

from typing import TYPE_CHECKING

from motel_booking.models import AddOn, Property, RatePlan, Room, RoomStatus, RoomType

from .schema import index_name

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


class InventoryCatalog:
    """Lookups of properties, room types, rooms, rate plans and add-ons."""

    PROPERTIES = "properties"
    ROOM_TYPES = "room-types"
    ROOMS = "rooms"
    RATE_PLANS = "rate-plans"
    ADD_ONS = "add-ons"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize catalog.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def get_property(self, property_id: str) -> Property | None:
        item = self.db.get_item(self.PROPERTIES, {"property_id": property_id})
        return Property.model_validate(item) if item else None

    def get_property_by_code(self, code: str) -> Property | None:
        items = self.db.query_by_gsi(
            self.PROPERTIES, index_name("code"), "code", code
        )
        return Property.model_validate(items[0]) if items else None

    def get_room_type(self, room_type_id: str) -> RoomType | None:
        item = self.db.get_item(self.ROOM_TYPES, {"room_type_id": room_type_id})
        return RoomType.model_validate(item) if item else None

    def get_room_types(self, room_type_ids: list[str]) -> dict[str, RoomType]:
        """Fetch several room types at once.

        Args:
            room_type_ids: Room type IDs, duplicates allowed

        Returns:
            Mapping of room type ID to RoomType for the IDs that exist
        """
        keys = [{"room_type_id": rid} for rid in dict.fromkeys(room_type_ids)]
        if not keys:
            return {}
        items = self.db.batch_get(self.ROOM_TYPES, keys)
        room_types = [RoomType.model_validate(item) for item in items]
        return {rt.room_type_id: rt for rt in room_types}

    def list_room_types(self, property_id: str) -> list[RoomType]:
        """All room types of a property, ordered by code."""
        items = self.db.query_by_gsi(
            self.ROOM_TYPES, index_name("property_id"), "property_id", property_id
        )
        room_types = [RoomType.model_validate(item) for item in items]
        return sorted(room_types, key=lambda rt: rt.code)

    def find_room_types_by_codes(
        self, property_id: str, codes: list[str] | tuple[str, ...]
    ) -> list[RoomType]:
        """Room types of a property whose code is in ``codes`` (case-insensitive)."""
        wanted = {code.upper() for code in codes}
        return [
            rt for rt in self.list_room_types(property_id) if rt.code.upper() in wanted
        ]

    def list_rooms(
        self,
        property_id: str,
        status: RoomStatus | None = None,
    ) -> list[Room]:
        """Rooms of a property, ordered by room ID.

        Args:
            property_id: Property to list
            status: Only return rooms in this status

        Returns:
            Rooms sorted ascending by room_id, the allocation order
        """
        items = self.db.query_by_gsi(
            self.ROOMS, index_name("property_id"), "property_id", property_id
        )
        rooms = [Room.model_validate(item) for item in items]
        if status is not None:
            rooms = [room for room in rooms if room.status == status]
        return sorted(rooms, key=lambda room: room.room_id)

    def get_rate_plan(self, property_id: str, rate_plan_id: str) -> RatePlan | None:
        """Get a rate plan, scoped to its property.

        Returns None when the plan exists but belongs to another property.
        """
        item = self.db.get_item(self.RATE_PLANS, {"rate_plan_id": rate_plan_id})
        if not item:
            return None
        plan = RatePlan.model_validate(item)
        return plan if plan.property_id == property_id else None

    def get_add_ons(self, property_id: str, addon_ids: list[str]) -> dict[str, AddOn]:
        """Fetch add-ons of a property; add-ons of other properties are left out."""
        keys = [{"addon_id": aid} for aid in dict.fromkeys(addon_ids)]
        if not keys:
            return {}
        items = self.db.batch_get(self.ADD_ONS, keys)
        add_ons = [AddOn.model_validate(item) for item in items]
        return {a.addon_id: a for a in add_ons if a.property_id == property_id}
