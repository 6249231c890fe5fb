"""
Error taxonomy shared by the service modules and the HTTP layer.

Validation errors carry field-level details. Storage errors only carry
a generic message; the underlying cause goes to the log.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from codec import CorruptArrayField

logger = logging.getLogger(__name__)


class PortfolioError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationFailed(PortfolioError):
    status_code = 400

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls("Validation error", [{"field": field, "message": message}])

    @classmethod
    def from_errors(cls, errors: Iterable[Dict[str, Any]]) -> "ValidationFailed":
        """Build from pydantic/FastAPI error dicts (`loc`, `msg`)."""
        details = []
        for err in errors:
            loc = [str(p) for p in err.get("loc", ())]
            # FastAPI prefixes the request part ("body", "query", "path")
            if len(loc) > 1 and loc[0] in ("body", "query", "path"):
                loc = loc[1:]
            details.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
        return cls("Validation error", details)


class MalformedRequestBody(PortfolioError):
    status_code = 400


class NotFound(PortfolioError):
    status_code = 404


class StorageFailure(PortfolioError):
    status_code = 500


@contextmanager
def storage_errors(message: str):
    """Turn persistence failures inside the block into StorageFailure(message)."""
    try:
        yield
    except (SQLAlchemyError, CorruptArrayField) as exc:
        logger.exception("%s: %s", message, exc)
        raise StorageFailure(message) from exc
