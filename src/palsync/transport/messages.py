"""Request and reply messages of the account and palace services."""

from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class WireMessage(BaseModel):
    """Base for all messages; fields travel in camelCase."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"

    def to_wire(self) -> Dict[str, Any]:
        """Serialize for the request body."""
        return self.model_dump(mode="json", by_alias=True)


class ObjectType(IntEnum):
    UNKNOWN = 0
    TRAP = 1
    HOARD = 2


class LoginError(IntEnum):
    UNKNOWN = 0
    INVALID_ACCOUNT_ID = 1


# account.AccountService

class CreateAccountRequest(WireMessage):
    pass


class CreateAccountReply(WireMessage):
    success: bool = False
    account_id: str = ""


class LoginRequest(WireMessage):
    account_id: str


class LoginReply(WireMessage):
    success: bool = False
    auth_token: str = ""
    expires_at: Optional[datetime] = None
    error: LoginError = LoginError.UNKNOWN

    @field_validator("error", mode="before")
    @classmethod
    def unknown_error_codes(cls, v):
        if v is None:
            return LoginError.UNKNOWN
        if isinstance(v, str) and v in LoginError.__members__:
            return LoginError[v]
        try:
            return LoginError(int(v))
        except (TypeError, ValueError):
            return LoginError.UNKNOWN

    @field_validator("expires_at")
    @classmethod
    def assume_utc(cls, v):
        # Timestamps without an offset are UTC on the wire.
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class VerifyRequest(WireMessage):
    pass


class VerifyReply(WireMessage):
    pass


# palace.PalaceService

class PalaceObject(WireMessage):
    # Raw value; types this client does not know still parse.
    type: int
    x: float
    y: float
    z: float


class DownloadFloorsRequest(WireMessage):
    territory_type: int


class DownloadFloorsReply(WireMessage):
    success: bool = False
    objects: List[PalaceObject] = Field(default_factory=list)


class UploadFloorsRequest(WireMessage):
    territory_type: int
    objects: List[PalaceObject] = Field(default_factory=list)


class UploadFloorsReply(WireMessage):
    success: bool = False


class StatisticsRequest(WireMessage):
    pass


class FloorStatistics(WireMessage):
    """Aggregate counts for one territory, passed through as received."""

    class Config:
        extra = "allow"

    territory_type: int = 0
    trap_count: int = 0
    hoard_count: int = 0


class StatisticsReply(WireMessage):
    success: bool = False
    floor_statistics: List[FloorStatistics] = Field(default_factory=list)
