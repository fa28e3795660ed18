"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the error taxonomy shared by the sentiment and risk
analysis packages.

These exceptions are for internal signalling and logging only.
The aggregator and router convert them into ``None``; the
sentiment service and risk analyzer never let them reach the
caller.

============================================================
EXCEPTION HIERARCHY
============================================================
PipelineError (base)
├── UpstreamUnavailableError   network, timeout, non-2xx
├── MalformedResponseError     unexpected payload shape, bad verdict
├── NotConfiguredError         missing credentials or addresses
└── NoDataError                structurally valid but empty snapshot

============================================================
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# BASE EXCEPTION
# ============================================================

class PipelineError(Exception):
    """
    Base exception for all pipeline errors.

    All exceptions carry:
    - source_name: which collaborator raised it
    - details: extra context for debugging
    - timestamp: when the error occurred
    """

    def __init__(
        self,
        message: str,
        source_name: str = "",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.source_name = source_name
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


# ============================================================
# TAXONOMY
# ============================================================

class UpstreamUnavailableError(PipelineError):
    """External service unreachable, timed out, or answered non-2xx."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        provider_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.status_code = status_code
        self.url = url
        self.provider_message = provider_message

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "url": self.url,
            "provider_message": self.provider_message,
        })
        return data


class MalformedResponseError(PipelineError):
    """Payload could not be decoded or had an unexpected shape."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        raw_data: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.raw_data = raw_data[:500] if raw_data else None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "raw_data_preview": self.raw_data[:100] if self.raw_data else None,
        })
        return data


class NotConfiguredError(PipelineError):
    """A credential or service address is missing."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        setting: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.setting = setting

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["setting"] = self.setting
        return data


class NoDataError(PipelineError):
    """Provider answered, but every metric of the snapshot was zero."""
    pass
