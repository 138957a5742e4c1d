"""
Error taxonomy shared by every layer of the service.

Each kind is an ``HTTPException`` so routers can re-raise it untouched and
FastAPI renders it as ``{"detail": {"error": <kind>, "message": ..., ...}}``.
Extra keyword arguments become additional context fields in the body, e.g.
the list of unresolved usernames on ``NotFound``.
"""

from fastapi import HTTPException, status


class ChatError(HTTPException):
    kind = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, headers: dict = None, **context):
        self.message = message
        self.context = context
        detail = {"error": self.kind, "message": message, **context}
        super().__init__(
            status_code=type(self).status_code, detail=detail, headers=headers
        )

    def __str__(self):
        return f"{self.kind}: {self.message}"


class InvalidRequest(ChatError):
    kind = "invalid_request"
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(ChatError):
    kind = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, **context):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"}, **context)


class Forbidden(ChatError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ChatError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ChatError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class Internal(ChatError):
    kind = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
