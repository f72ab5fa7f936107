"""
Audit trail middleware

Records every mutating request (POST, PUT, PATCH, DELETE) under /api into
audit_logs: the action, the entity it touched, the acting user and the
client. Audit failures are logged and never affect the response.
"""

import json
import logging
from typing import Callable, Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .database import get_db
from .models import AuditLog
from .security_utils import verify_access_token

logger = logging.getLogger(__name__)

AUDITED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def parse_entity(path: str, prefix: str = "/api") -> tuple[str, Optional[str]]:
    """"/api/invoices/12/pdf" -> ("invoices", "12")"""
    if path.startswith(prefix):
        path = path[len(prefix):]
    parts = [p for p in path.split("/") if p]
    entity_type = parts[0] if parts else "unknown"
    entity_id = parts[1] if len(parts) > 1 and parts[1].isdigit() else None
    return entity_type, entity_id


def user_id_from_request(request: Request) -> Optional[int]:
    auth = request.headers.get("authorization", "")
    if not auth.lower().startswith("bearer "):
        return None
    payload = verify_access_token(auth[7:])
    return payload.get("user_id") if payload else None


class AuditLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, prefix: str = "/api"):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if request.method in AUDITED_METHODS and request.url.path.startswith(self.prefix):
            entity_type, entity_id = parse_entity(request.url.path, self.prefix)
            entry = {
                "user_id": user_id_from_request(request),
                "action": f"{request.method} {request.url.path}",
                "entity_type": entity_type,
                "entity_id": entity_id,
                "details": json.dumps(
                    {
                        "method": request.method,
                        "path": request.url.path,
                        "query": dict(request.query_params),
                        "status": response.status_code,
                    }
                ),
                "ip_address": request.client.host if request.client else None,
                "user_agent": (request.headers.get("user-agent") or "")[:500] or None,
            }
            await run_in_threadpool(self._record, request, entry)

        return response

    @staticmethod
    def _record(request: Request, entry: dict) -> None:
        # Honour get_db overrides so the audit row lands in the request's database
        provider = request.app.dependency_overrides.get(get_db, get_db)
        sessions = provider()
        db = next(sessions)
        try:
            db.add(AuditLog(**entry))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Audit log write failed for {entry['action']}: {e}")
        finally:
            sessions.close()
