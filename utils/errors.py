from typing import Tuple

from fastapi.responses import JSONResponse


class ResumeRoosterError(Exception):
    """Base class for every error raised by this project"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(ResumeRoosterError):
    """Network or HTTP failure between the client and the server"""
    status_code = 502


class ValidationError(ResumeRoosterError):
    """A required field is missing or carries an unsupported value"""
    status_code = 400


class UpstreamError(ResumeRoosterError):
    """The hosted assistant service answered with a failure"""
    status_code = 502


class StateError(ResumeRoosterError):
    """An operation was attempted without its prerequisite"""
    status_code = 409


def describe_error(exc: Exception, fallback: str) -> Tuple[int, str]:
    """
    Map an exception onto a status code and a client-safe message

    Args:
        exc: The exception raised by a service call
        fallback: Message used for errors outside the project's taxonomy

    Returns:
        A (status_code, message) tuple
    """
    if isinstance(exc, ResumeRoosterError):
        return exc.status_code, exc.message
    return 500, fallback


def error_response(exc: Exception, fallback: str) -> JSONResponse:
    """Build the structured failure body every route answers with"""
    status_code, message = describe_error(exc, fallback)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message}
    )
