from botocore.exceptions import ClientError
import logging
from decimal import Decimal
from typing import Optional, List
from boto3.dynamodb.conditions import Attr
from common.models.rooms import Room, Category
from common.utils.custom_exceptions import NotFoundException

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)


class RoomRepository:
    def __init__(self, table: Table):
        self.table = table

    @staticmethod
    def _to_room(item: dict) -> Room:
        return Room(
            room_id=item["pk"].removeprefix("ROOM#"),
            name=item["name"],
            category=Category(item["category"]),
            capacity=int(item["capacity"]),
            price_per_night=Decimal(str(item["price_per_night"])),
            available=bool(item.get("available", True)),
            booking_version=int(item.get("booking_version", 0)),
        )

    def add_room(self, room: Room):
        try:
            self.table.put_item(
                Item={
                    "pk": f"ROOM#{room.room_id}",
                    "sk": "DETAILS",
                    "entity": "ROOM",
                    "name": room.name,
                    "category": room.category.value,
                    "capacity": room.capacity,
                    "price_per_night": Decimal(str(room.price_per_night)),
                    "available": room.available,
                    "booking_version": room.booking_version,
                },
                ConditionExpression="attribute_not_exists(pk)",
            )
        except ClientError as err:
            logger.error(f"Error creating room {room.room_id}: {err}")
            raise

    def get_room_by_id(self, room_id: str) -> Optional[Room]:
        try:
            response = self.table.get_item(
                Key={"pk": f"ROOM#{room_id}", "sk": "DETAILS"}
            )
        except ClientError as err:
            logger.error(f"Error retrieving room by id {room_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return self._to_room(item)

    def list_rooms(self) -> List[Room]:
        scan_kwargs = {"FilterExpression": Attr("entity").eq("ROOM")}
        rooms = []
        try:
            while True:
                resp = self.table.scan(**scan_kwargs)
                rooms.extend(self._to_room(item) for item in resp.get("Items", []))
                if "LastEvaluatedKey" not in resp:
                    break
                scan_kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]
        except ClientError as err:
            logger.error(f"Error listing rooms: {err}")
            raise
        return rooms

    def update_room_availability(self, room_id: str, available: bool):
        try:
            self.table.update_item(
                Key={"pk": f"ROOM#{room_id}", "sk": "DETAILS"},
                UpdateExpression="SET #attribute=:value",
                ExpressionAttributeNames={"#attribute": "available"},
                ExpressionAttributeValues={
                    ":value": available,
                },
                ConditionExpression="attribute_exists(pk)",
            )
        except ClientError as err:
            if (
                err.response.get("Error", {}).get("Code")
                == "ConditionalCheckFailedException"
            ):
                raise NotFoundException("room", room_id, 404)
            logger.error(f"Error updating room {room_id} availability: {err}")
            raise
