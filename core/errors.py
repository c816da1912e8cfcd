# core/errors.py

from typing import List, Optional

from fastapi import HTTPException


# ============================================================
# Workflow (business-rule) errors
# ============================================================
class WorkflowError(Exception):
    """Base class for rejected request-lifecycle operations."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RequestValidationError(WorkflowError):
    """Client-side style validation failure. Blocking, message-only."""
    status_code = 400

    def __init__(self, errors: List[str]):
        super().__init__(", ".join(errors))
        self.errors = errors


class PermissionDenied(WorkflowError):
    status_code = 403


class InvalidTransition(WorkflowError):
    status_code = 400


class DuplicateAction(WorkflowError):
    status_code = 409


class NotFound(WorkflowError):
    status_code = 404


def workflow_http_error(error: WorkflowError) -> HTTPException:
    """Translate a workflow error into the HTTPException the router raises."""
    return HTTPException(status_code=error.status_code, detail=error.message)


# ============================================================
# REST client errors
# ============================================================
class ApiError(Exception):
    """
    Failure talking to the REST API.

    status_code is None for transport failures (connection refused, timeout,
    undecodable body); otherwise the HTTP status. message is the server's
    error text verbatim when one was sent.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# ============================================================
# Supabase errors
# ============================================================
def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase client errors.
    Handles PostgREST errors, GoTrue errors and generic exceptions.
    """
    message = getattr(error, "message", None)
    if message:
        return str(message)

    if getattr(error, "args", None):
        return str(error.args[0])

    return str(error) or "Unknown Supabase error"


def supabase_error(error: Exception, message: str = "Supabase error"):
    """
    Convert Supabase / database errors into HTTPExceptions.
    Always raises.
    """
    detail = extract_supabase_error(error)

    raise HTTPException(
        status_code=500,
        detail=f"{message}: {detail}"
    )
