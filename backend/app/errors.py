class TaskflowError(Exception):
    """Base class for failures surfaced to clients as ``{success: false, message}``."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TaskflowError):
    status_code = 404


class AccessDeniedError(TaskflowError):
    status_code = 403


class ValidationError(TaskflowError):
    status_code = 400


class InvalidTransitionError(TaskflowError):
    status_code = 400
