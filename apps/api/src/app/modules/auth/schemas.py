"""Authentication schemas."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Registration request. Field presence is validated by the service."""

    email: str | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str | None = Field(
        default=None, validation_alias=AliasChoices("current_password", "currentPassword")
    )
    new_password: str | None = Field(
        default=None, validation_alias=AliasChoices("new_password", "newPassword")
    )


class ForgotPasswordRequest(BaseModel):
    email: str | None = None


class ResetPasswordRequest(BaseModel):
    token: str | None = None
    new_password: str | None = Field(
        default=None, validation_alias=AliasChoices("new_password", "newPassword")
    )


class UserResponse(BaseModel):
    """Public view of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    role: str
    first_name: str
    last_name: str
    full_name: str
    grit_id: str | None = None

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=str(user.id),
            email=user.email,
            role=user.role.value,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            grit_id=user.grit_id,
        )


class AuthResponse(BaseModel):
    """Returned by register and login."""

    user: UserResponse
    token: str
    refresh_token: str | None = None
    session_id: str | None = None


class MessageResponse(BaseModel):
    message: str


class ForgotPasswordResponse(BaseModel):
    message: str
    reset_token: str | None = None
