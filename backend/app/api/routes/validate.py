import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse

from ...schemas import ValidateRequest, ValidationVerdict
from ...services import stickers as sticker_catalog
from ...services import validation

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ValidationVerdict)
async def validate_photo(payload: ValidateRequest) -> ValidationVerdict | JSONResponse:
    """Judge a photo against a sticker's reference artwork. The model key stays server-side."""
    if not payload.user_photo_base64 or not payload.reference_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing userPhotoBase64 or referenceId",
        )
    sticker = sticker_catalog.find_sticker(payload.reference_id)
    if sticker is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown sticker reference")

    photo = validation.decode_photo(payload.user_photo_base64)
    try:
        return await validation.judge_photo(photo, sticker, payload.sticker_name)
    except (HTTPException, ValueError) as exc:
        logger.error("Validation error for %s: %s", sticker.id, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Validation failed", "reason": validation.SERVER_ERROR_REASON},
        )
