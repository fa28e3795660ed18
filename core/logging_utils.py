"""
Core Module - Secure Logging Utilities.

============================================================
PURPOSE
============================================================
Keeps provider credentials out of the logs:
- Credential masking (API keys, tenant ids)
- Request body sanitization (the sentiment provider takes
  its key in the body)
- URL query masking (the inference service takes its key
  as ``?key=``)

============================================================
SECURITY REQUIREMENTS
============================================================
1. NEVER log raw API keys
2. Mask sensitive headers (X-API-Key, X-Tenant-ID, ...)
3. Mask sensitive body fields and query parameters

============================================================
"""

import re
from typing import Any, Dict


# ============================================================
# SENSITIVE DATA PATTERNS
# ============================================================

SENSITIVE_HEADERS = {
    "authorization",
    "x-api-key",
    "x-tenant-id",
    "x-goog-api-key",
    "api-key",
}

SENSITIVE_PARAMS = {
    "apikey",
    "api_key",
    "key",
    "secret",
    "token_secret",
    "password",
    "access_token",
}


# ============================================================
# MASKING FUNCTIONS
# ============================================================

def mask_value(value: str, show_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only first few chars.

    Args:
        value: Value to mask
        show_chars: Number of chars to show at start

    Returns:
        Masked value
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Mask sensitive headers."""
    if not headers:
        return {}

    masked = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            masked[key] = mask_value(str(value))
        else:
            masked[key] = value
    return masked


def mask_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive fields of a JSON body or query dict, recursively."""
    if not params:
        return {}

    masked: Dict[str, Any] = {}
    for key, value in params.items():
        if key.lower() in SENSITIVE_PARAMS:
            masked[key] = mask_value(str(value)) if value else value
        elif isinstance(value, dict):
            masked[key] = mask_params(value)
        elif isinstance(value, list):
            masked[key] = [mask_params(v) if isinstance(v, dict) else v for v in value]
        else:
            masked[key] = value
    return masked


def mask_url(url: str) -> str:
    """
    Mask sensitive data in URL.

    Args:
        url: URL string

    Returns:
        URL with sensitive params masked
    """
    if not url:
        return url

    for param in SENSITIVE_PARAMS:
        pattern = re.compile(f'([?&]{param}=)([^&]+)', re.IGNORECASE)
        url = pattern.sub(lambda m: f'{m.group(1)}***', url)

    return url
