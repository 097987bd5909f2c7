from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from identifiers import (
    normalize_display_name,
    normalize_room_id,
    normalize_signal_address,
    normalize_user_id,
)


class Member(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="uid")
    display_name: str = Field(alias="name")
    signal_address: str = Field(alias="peerId")
    # connection_id of the socket that joined as this member; never sent to clients
    owner: Optional[str] = Field(default=None, exclude=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class JoinRequest(BaseModel):
    """Payload of an inbound voice:join, normalized on the way in.

    Fields are never rejected by pydantic itself; an empty identifier after
    normalization is what marks the request as bad.
    """

    model_config = ConfigDict(populate_by_name=True, validate_default=True)

    room_id: str = Field(default="", alias="roomId")
    user_id: str = Field(default="", alias="uid")
    display_name: str = Field(default="", alias="name")
    signal_address: str = Field(default="", alias="peerId")

    @field_validator("room_id", mode="before")
    @classmethod
    def _room_id(cls, value: Any) -> str:
        return normalize_room_id(value)

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id(cls, value: Any) -> str:
        return normalize_user_id(value)

    @field_validator("display_name", mode="before")
    @classmethod
    def _display_name(cls, value: Any) -> str:
        return normalize_display_name(value)

    @field_validator("signal_address", mode="before")
    @classmethod
    def _signal_address(cls, value: Any) -> str:
        return normalize_signal_address(value)

    @classmethod
    def from_payload(cls, payload: Any) -> "JoinRequest":
        return cls.model_validate(payload if isinstance(payload, dict) else {})

    @property
    def is_valid(self) -> bool:
        return bool(self.room_id and self.user_id and self.signal_address)


class LeaveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_default=True)

    room_id: str = Field(default="", alias="roomId")
    user_id: str = Field(default="", alias="uid")

    @field_validator("room_id", mode="before")
    @classmethod
    def _room_id(cls, value: Any) -> str:
        return normalize_room_id(value)

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id(cls, value: Any) -> str:
        return normalize_user_id(value)

    @classmethod
    def from_payload(cls, payload: Any) -> "LeaveRequest":
        return cls.model_validate(payload if isinstance(payload, dict) else {})

    @property
    def is_valid(self) -> bool:
        return bool(self.room_id and self.user_id)


class JoinAck(BaseModel):
    ok: bool
    peers: Optional[List[Member]] = None
    error: Optional[str] = None

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class UserLeft(BaseModel):
    uid: str


class InboundFrame(BaseModel):
    event: str
    data: Any = None
    ack: Optional[Any] = None


class RoomListResponse(BaseModel):
    count: int
    rooms: List[str]


class RoomDetailsResponse(BaseModel):
    room_id: str
    peers: List[Member]
