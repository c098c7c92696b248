"""
Error kinds raised by the access-control engine.

Handlers never build HTTP responses themselves; the app-level exception
handler in ``app.main`` turns these into ``{"error": ...}`` bodies.
"""


class AccessError(Exception):
    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(AccessError):
    status_code = 401
    default_detail = "Not authenticated"


class PasswordChangeRequired(AccessError):
    status_code = 403
    default_detail = "Password change required"


class Forbidden(AccessError):
    status_code = 403
    default_detail = "Forbidden"


class NotVisible(Forbidden):
    default_detail = "Target is not visible to you"


class NotFound(AccessError):
    status_code = 404
    default_detail = "Not found"


class InvalidOperation(AccessError):
    status_code = 400
    default_detail = "Invalid operation"


class Conflict(AccessError):
    status_code = 409
    default_detail = "Conflict"
