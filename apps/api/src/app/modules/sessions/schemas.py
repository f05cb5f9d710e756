"""Session schemas."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SessionInfo(BaseModel):
    """Session as shown to its owner. No token material."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    device_name: str | None = None
    ip_address: str | None = None
    last_activity: datetime | None = None
    created_at: datetime | None = None
    expires_at: datetime
    is_current: bool = False


class SessionListResponse(BaseModel):
    sessions: list[SessionInfo]
    count: int


class CurrentSessionResponse(BaseModel):
    session: SessionInfo


class RefreshRequest(BaseModel):
    refresh_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("refresh_token", "refreshToken"),
    )


class RefreshResponse(BaseModel):
    token: str
    expires_at: datetime
    message: str = "Session refreshed successfully"


class RevokeAllResponse(BaseModel):
    message: str
    revoked_count: int


class MessageResponse(BaseModel):
    message: str
