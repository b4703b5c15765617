from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ToolkitModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SignInResponse(ToolkitModel):
    local_id: str = Field(default="", alias="localId")
    email: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")
    photo_url: str | None = Field(default=None, alias="photoUrl")
    phone_number: str | None = Field(default=None, alias="phoneNumber")
    id_token: str = Field(default="", alias="idToken")
    refresh_token: str | None = Field(default=None, alias="refreshToken")
    expires_in: str | None = Field(default=None, alias="expiresIn")


class IdpSignInResponse(SignInResponse):
    provider_id: str | None = Field(default=None, alias="providerId")
    need_confirmation: bool = Field(default=False, alias="needConfirmation")
    oauth_id_token: str | None = Field(default=None, alias="oauthIdToken")
    oauth_access_token: str | None = Field(default=None, alias="oauthAccessToken")


class SendVerificationCodeResponse(ToolkitModel):
    session_info: str = Field(alias="sessionInfo")


class ToolkitErrorDetail(ToolkitModel):
    code: int = 0
    message: str = ""


class ToolkitErrorResponse(ToolkitModel):
    error: ToolkitErrorDetail
