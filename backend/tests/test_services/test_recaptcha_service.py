"""Tests for RecaptchaService."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from models.exceptions import ServiceUnavailableException, ValidationException
from services.recaptcha_service import SITEVERIFY_URL, RecaptchaService


def mock_siteverify(mock_client, payload: dict) -> AsyncMock:
    response = Mock()
    response.raise_for_status = Mock()
    response.json = Mock(return_value=payload)
    post = AsyncMock(return_value=response)
    mock_client.return_value.__aenter__.return_value.post = post
    return post


class TestVerify:
    """Tests for RecaptchaService.verify."""

    @pytest.mark.asyncio
    async def test_blank_token_rejected(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await RecaptchaService.verify("  ")
        assert exc_info.value.message == "reCAPTCHA token is required"

    @pytest.mark.asyncio
    async def test_skipped_without_secret(self) -> None:
        with patch("services.recaptcha_service.settings") as mock_settings:
            mock_settings.RECAPTCHA_SECRET_KEY = ""
            result = await RecaptchaService.verify("token")

        assert result.success is True
        assert result.message == "reCAPTCHA verification skipped"

    @pytest.mark.asyncio
    async def test_success_returns_score(self) -> None:
        with patch("services.recaptcha_service.settings") as mock_settings:
            mock_settings.RECAPTCHA_SECRET_KEY = "secret"
            mock_settings.RECAPTCHA_MIN_SCORE = 0.5
            mock_settings.RECAPTCHA_TIMEOUT = 5.0
            with patch("httpx.AsyncClient") as mock_client:
                post = mock_siteverify(mock_client, {"success": True, "score": 0.9})
                result = await RecaptchaService.verify("token", "10.0.0.1")

        assert result.success is True
        assert result.score == 0.9
        post.assert_awaited_once()
        assert post.call_args.args[0] == SITEVERIFY_URL
        assert post.call_args.kwargs["data"]["remoteip"] == "10.0.0.1"

    @pytest.mark.asyncio
    async def test_failed_check(self) -> None:
        with patch("services.recaptcha_service.settings") as mock_settings:
            mock_settings.RECAPTCHA_SECRET_KEY = "secret"
            with patch("httpx.AsyncClient") as mock_client:
                mock_siteverify(mock_client, {"success": False})
                with pytest.raises(ValidationException) as exc_info:
                    await RecaptchaService.verify("token")

        assert exc_info.value.message == "reCAPTCHA verification failed"

    @pytest.mark.asyncio
    async def test_low_score(self) -> None:
        with patch("services.recaptcha_service.settings") as mock_settings:
            mock_settings.RECAPTCHA_SECRET_KEY = "secret"
            mock_settings.RECAPTCHA_MIN_SCORE = 0.5
            with patch("httpx.AsyncClient") as mock_client:
                mock_siteverify(mock_client, {"success": True, "score": 0.1})
                with pytest.raises(ValidationException) as exc_info:
                    await RecaptchaService.verify("token")

        assert "score too low" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_network_error_is_unavailable(self) -> None:
        with patch("services.recaptcha_service.settings") as mock_settings:
            mock_settings.RECAPTCHA_SECRET_KEY = "secret"
            with patch("httpx.AsyncClient") as mock_client:
                mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                    side_effect=httpx.ConnectTimeout("timed out")
                )
                with pytest.raises(ServiceUnavailableException) as exc_info:
                    await RecaptchaService.verify("token")

        assert exc_info.value.status_code == 503
