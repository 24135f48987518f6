from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from backoffice.schemas.user import UserDetails


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Requests: fields are optional so missing values surface as a 400 from the
# service instead of a framework-level 422.


class LoginRequest(_CamelModel):
    email: str | None = None
    password: str | None = None


class ForgotPasswordRequest(_CamelModel):
    email: str | None = None


class ResetPasswordRequest(_CamelModel):
    token: str | None = None
    new_password: str | None = Field(default=None, alias="newPassword")


class ChangePasswordRequest(_CamelModel):
    old_password: str | None = Field(default=None, alias="oldPassword")
    new_password: str | None = Field(default=None, alias="newPassword")


# Responses


class MessageResponse(_CamelModel):
    message: str


class LoginStatus(_CamelModel):
    message: str
    access_token: str = Field(alias="accessToken")


class LoginResponse(_CamelModel):
    status: LoginStatus
    user_details: UserDetails = Field(alias="userDetails")


class RefreshResponse(_CamelModel):
    message: str
    access_token: str = Field(alias="accessToken")


class ResetDebug(_CamelModel):
    token: str
    reset_link: str = Field(alias="resetLink")
    expires_at: datetime = Field(alias="expiresAt")


class ForgotPasswordResponse(_CamelModel):
    message: str
    debug: ResetDebug | None = None


class ResetPasswordResponse(_CamelModel):
    message: str
    redirect: str
