from pydantic import BaseModel, EmailStr, Field


class SessionUser(BaseModel):
    id: str | None = None
    email: str | None = None


class AuthSession(BaseModel):
    access_token: str
    refresh_token: str | None = None
    user: SessionUser = Field(default_factory=SessionUser)


class MagicLinkRequest(BaseModel):
    email: EmailStr


class MagicLinkResponse(BaseModel):
    stage: str
    demo: bool = False


class AuthCallbackRequest(BaseModel):
    fragment: str


class AvatarChoice(BaseModel):
    type: str
    value: str
    label: str
