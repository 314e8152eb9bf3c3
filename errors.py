class ChatError(Exception):
    """Base for every failure the API reports to a client.

    `code` is the machine-readable reason, `detail` the human one.
    """

    status_code = 500
    default_code = "internal_error"

    def __init__(self, detail: str, code: str = None):
        super().__init__(detail)
        self.detail = detail
        self.code = code or self.default_code


class ValidationError(ChatError):
    status_code = 400
    default_code = "invalid_request"


class UnauthorizedError(ChatError):
    status_code = 401
    default_code = "unauthorized"


class ForbiddenError(ChatError):
    status_code = 403
    default_code = "forbidden"


class NotFoundError(ChatError):
    status_code = 404
    default_code = "not_found"


class ConflictError(ChatError):
    status_code = 409
    default_code = "conflict"
