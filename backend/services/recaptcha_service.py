"""
Google reCAPTCHA v3 verification.

Verification is skipped (and reported as successful) while
RECAPTCHA_SECRET_KEY is unset, so local and test setups need no keys.
"""

from typing import Optional

import httpx
from loguru import logger

import models.schemas as schemas
from models.config import settings
from models.exceptions import ServiceUnavailableException, ValidationException

SITEVERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class RecaptchaService:
    """Verifies reCAPTCHA tokens against Google's siteverify endpoint."""

    @staticmethod
    def is_enabled() -> bool:
        return bool(settings.RECAPTCHA_SECRET_KEY)

    @classmethod
    async def verify(
        cls, token: Optional[str], remote_ip: Optional[str] = None
    ) -> schemas.RecaptchaResult:
        """
        Verify a token.

        Args:
            token: Token produced by the reCAPTCHA client
            remote_ip: Optional client address forwarded to Google

        Returns:
            Successful result with the score (None when verification is off)

        Raises:
            ValidationException: Blank token, failed check or score too low
            ServiceUnavailableException: Google could not be reached
        """
        if not token or not token.strip():
            raise ValidationException("reCAPTCHA token is required")

        if not cls.is_enabled():
            return schemas.RecaptchaResult(
                success=True, message="reCAPTCHA verification skipped"
            )

        payload = {"secret": settings.RECAPTCHA_SECRET_KEY, "response": token}
        if remote_ip:
            payload["remoteip"] = remote_ip

        try:
            async with httpx.AsyncClient(timeout=settings.RECAPTCHA_TIMEOUT) as client:
                response = await client.post(SITEVERIFY_URL, data=payload)
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"reCAPTCHA API error: {e}")
            raise ServiceUnavailableException(
                "reCAPTCHA service temporarily unavailable. Please try again."
            ) from e

        if not result.get("success"):
            logger.warning(
                f"reCAPTCHA verification failed: {result.get('error-codes', [])}"
            )
            raise ValidationException("reCAPTCHA verification failed")

        score = result.get("score")
        if score is not None and score < settings.RECAPTCHA_MIN_SCORE:
            logger.warning(f"reCAPTCHA score too low: {score}")
            raise ValidationException("reCAPTCHA verification failed: score too low")

        return schemas.RecaptchaResult(
            success=True, score=score, message="reCAPTCHA verified"
        )
