"""Rate limiter configuration module.

This module is separate from main.py to avoid circular imports when routers
need to access the limiter.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Per client address
AUTH_LIMIT = "10/minute"
SUBMISSION_LIMIT = "20/minute"
RECAPTCHA_LIMIT = "30/minute"

limiter = Limiter(key_func=get_remote_address)
