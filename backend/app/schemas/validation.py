from pydantic import BaseModel, ConfigDict, Field


class ValidateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_photo_base64: str | None = Field(default=None, alias="userPhotoBase64")
    reference_id: str | None = Field(default=None, alias="referenceId")
    sticker_name: str | None = Field(default=None, alias="stickerName")


class ValidationVerdict(BaseModel):
    valid: bool
    confidence: float = 0
    reason: str = ""
