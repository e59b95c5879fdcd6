"""Service-layer errors, turned into JSON responses by the handler in main.py."""


class ServiceError(Exception):
    status_code = 400
    code = "bad_request"

    def __init__(self, message: str = "", code: str = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class NotFoundError(ServiceError):
    status_code = 404
    code = "not_found"


class ForbiddenError(ServiceError):
    status_code = 403
    code = "forbidden"


class ConflictError(ServiceError):
    status_code = 409
    code = "conflict"


class ValidationError(ServiceError):
    status_code = 422
    code = "invalid"


class ActiveCallInProgress(ConflictError):
    code = "ACTIVE_CALL_IN_PROGRESS"

    def __init__(self, message: str = "Interviewer has an active call in progress"):
        super().__init__(message)
