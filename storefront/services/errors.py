class ServiceError(Exception):
    """Base class for errors raised by service functions."""


class NotFoundError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass


class ValidationError(ServiceError):
    pass
