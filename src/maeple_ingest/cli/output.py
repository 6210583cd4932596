"""JSON output helpers for CLI commands.

Every command prints exactly one JSON document on stdout:

    {"success": true,  "data": {...}, "error": null,  "meta": {...}}
    {"success": false, "data": {"error_code": ..., ...}, "error": "...", "meta": {...}}
"""

from __future__ import annotations

import json
import sys
from typing import Any, Dict, NoReturn, Optional

import click

from maeple_ingest.core.errors.base import ErrorCode, error_to_response

RESPONSE_VERSION = "response-v2"


def _emit(payload: Dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def emit_success(data: Dict[str, Any]) -> None:
    """Print a success envelope."""
    _emit({"success": True, "data": data, "error": None, "meta": {"version": RESPONSE_VERSION}})


def emit_error(
    message: str,
    *,
    code: str,
    error_type: str,
    remediation: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> NoReturn:
    """Print an error envelope and exit with status 1."""
    data: Dict[str, Any] = {"error_code": code, "error_type": error_type}
    if remediation:
        data["remediation"] = remediation
    if details:
        data.update(details)
    _emit({"success": False, "data": data, "error": message, "meta": {"version": RESPONSE_VERSION}})
    sys.exit(1)


def emit_exception(exc: Exception, *, error_type: str, remediation: Optional[str] = None) -> NoReturn:
    """Report a registered exception; unregistered ones are re-raised."""
    response = error_to_response(exc)
    if response is None:
        raise exc
    details = {k: v for k, v in response.items() if k not in ("success", "error", "error_code")}
    emit_error(
        response["error"],
        code=response["error_code"],
        error_type=error_type,
        remediation=remediation,
        details=details,
    )


__all__ = ["ErrorCode", "emit_success", "emit_error", "emit_exception"]
