"""Secret redaction for logged metadata."""

from typing import Any, Dict, Mapping, Optional

REDACTED = "[REDACTED]"

SENSITIVE_KEYS = {
    "authorization",
    "auth",
    "token",
    "github_token",
    "github-token",
    "input_github_token",
    "access_token",
    "api_key",
    "apikey",
}


def redact_payload(payload: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Copy of payload with sensitive values replaced (keys match case-insensitively)."""
    if not payload:
        return {}
    return {
        key: REDACTED if key.lower() in SENSITIVE_KEYS else value
        for key, value in payload.items()
    }


def format_metadata(payload: Mapping[str, Any]) -> str:
    return ", ".join(f"{key}={value}" for key, value in redact_payload(payload).items())
