"""
Clinic error taxonomy.

Every error is an HTTPException so route handlers pass it through unchanged.
`context` carries the values needed to reconstruct the violated rule
(remaining balance, attempted stock delta, ...) and is merged into the
JSON error body by the handler in main.py.
"""

from typing import Any, Optional

from fastapi import HTTPException


class ClinicError(HTTPException):
    status_code = 400

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code or self.status_code, detail=message)
        self.message = message
        self.context = context or {}


class ValidationError(ClinicError):
    """Malformed input: chair out of range, inverted interval, bad transition"""

    status_code = 400


class ConflictError(ClinicError):
    """Chair double-booking or a lost race on a unique value"""

    status_code = 409


class NotFoundError(ClinicError):
    status_code = 404


class BusinessRuleError(ClinicError):
    """Overpayment, insufficient stock"""

    status_code = 400


class AuthenticationError(ClinicError):
    status_code = 401


class PermissionDeniedError(ClinicError):
    status_code = 403
