from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, PlainValidator, field_validator
from pydantic.alias_generators import to_camel


def _to_object_id(v: Any) -> ObjectId:
    if isinstance(v, ObjectId):
        return v
    if isinstance(v, str) and ObjectId.is_valid(v):
        return ObjectId(v)
    raise ValueError(f"invalid ObjectId: {v!r}")


PyObjectId = Annotated[ObjectId, PlainValidator(_to_object_id), PlainSerializer(str, when_used="json")]


class BootstrapRecord(BaseModel):
    """
    A land application document as it is stored in the `applications` collection.

    Python attributes are snake_case; the stored field names are the camelCase
    ones the application server reads (`areaHectares`, `isDeleted`, ...), and the
    identifier is stored as `_id`.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        arbitrary_types_allowed=True,
    )

    id: PyObjectId = Field(alias="_id")
    name: str
    status: str
    agency: str
    client: str
    location: str
    purpose: str
    tags: list[list[str]] = Field(default_factory=list)
    area_hectares: Annotated[float, Field(ge=0)]
    created_date: datetime
    publish_date: datetime
    is_deleted: bool = False
    # [longitude, latitude]
    centroid: tuple[float, float]

    @field_validator("created_date", "publish_date")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        # Mongo stores BSON dates as UTC; a naive value is taken to already be UTC.
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    @field_validator("centroid")
    @classmethod
    def _lon_lat(cls, v: tuple[float, float]) -> tuple[float, float]:
        lon, lat = v
        if not -180.0 <= lon <= 180.0:
            raise ValueError(f"centroid longitude out of range: {lon}")
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"centroid latitude out of range: {lat}")
        return v

    def to_document(self) -> dict[str, Any]:
        doc = self.model_dump(by_alias=True)
        doc["tags"] = [list(group) for group in self.tags]
        doc["centroid"] = list(self.centroid)
        return doc


TEST_APPLICATION = BootstrapRecord(
    _id=ObjectId("69850c237f00b0a3ef284d0c"),
    name="Test Crown Land Application",
    status="Active",
    agency="Ministry of Example",
    client="Test Client Corp",
    location="British Columbia",
    purpose="Land development test application",
    tags=[["public"]],
    areaHectares=150.5,
    createdDate=datetime(2024, 1, 15, tzinfo=UTC),
    publishDate=datetime(2024, 1, 20, tzinfo=UTC),
    isDeleted=False,
    centroid=(-120.5, 49.5),
)
