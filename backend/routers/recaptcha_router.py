"""Standalone reCAPTCHA verification for frontend forms."""

from fastapi import APIRouter, Request

import models.schemas as schemas
from helpers.rate_limiter import RECAPTCHA_LIMIT, limiter
from services.recaptcha_service import RecaptchaService

router = APIRouter(prefix="/recaptcha", tags=["recaptcha"])


@router.post("/verify", response_model=schemas.RecaptchaResult)
@limiter.limit(RECAPTCHA_LIMIT)
async def verify_recaptcha(
    request: Request, data: schemas.RecaptchaVerifyRequest
) -> schemas.RecaptchaResult:
    client_ip = request.client.host if request.client else None
    return await RecaptchaService.verify(data.token, client_ip)
