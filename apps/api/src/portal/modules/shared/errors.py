"""
Service Error Taxonomy

Every service-layer failure is a PortalServiceError carrying a stable
error code and the HTTP status routers should answer with. Public
operations catch these at their boundary and return an ActionResult.
"""

import enum


class ErrorCode(str, enum.Enum):
    """Stable, client-visible failure kinds."""

    NOT_FOUND = "NOT_FOUND"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    ALREADY_USED = "ALREADY_USED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    AUTHORIZATION_DENIED = "AUTHORIZATION_DENIED"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"


class PortalServiceError(Exception):
    """Base exception for portal service errors."""

    def __init__(self, message: str, error_code: ErrorCode, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(PortalServiceError):
    """Token, request or student does not exist."""

    def __init__(self, message: str = "Registro no encontrado."):
        super().__init__(message=message, error_code=ErrorCode.NOT_FOUND, status_code=404)


class AlreadyProcessedError(PortalServiceError):
    """The hour request already left the pending state."""

    def __init__(self, message: str = "Esta solicitud ya ha sido procesada."):
        super().__init__(
            message=message, error_code=ErrorCode.ALREADY_PROCESSED, status_code=409
        )


class AlreadyUsedError(PortalServiceError):
    """The activation token was already consumed."""

    def __init__(self, message: str = "Este token ya ha sido utilizado."):
        super().__init__(message=message, error_code=ErrorCode.ALREADY_USED, status_code=409)


class ValidationFailedError(PortalServiceError):
    """Input shape or policy violation."""

    def __init__(self, message: str):
        super().__init__(
            message=message, error_code=ErrorCode.VALIDATION_FAILED, status_code=422
        )


class IncompleteRecordError(ValidationFailedError):
    """The student row lacks the fields activation needs to display."""

    def __init__(self, message: str = "Faltan datos requeridos en el registro del estudiante."):
        super().__init__(message)


class MissingStudentDataError(ValidationFailedError):
    """The student lacks the name or internal id the ledger denormalizes."""

    def __init__(
        self,
        message: str = "No se encontraron los datos del estudiante (nombre o ID de becado).",
    ):
        super().__init__(message)


class AuthorizationDeniedError(PortalServiceError):
    """The caller lacks the role the operation requires."""

    def __init__(self, message: str = "No tienes permisos para realizar esta acción."):
        super().__init__(
            message=message, error_code=ErrorCode.AUTHORIZATION_DENIED, status_code=403
        )


class PartialFailureError(PortalServiceError):
    """A multi-step operation stopped after some steps were applied."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code=ErrorCode.PARTIAL_FAILURE, status_code=207)


class UpstreamUnavailableError(PortalServiceError):
    """The database, credential store, storage or renderer failed."""

    def __init__(self, message: str = "El servicio no está disponible. Intenta más tarde."):
        super().__init__(
            message=message, error_code=ErrorCode.UPSTREAM_UNAVAILABLE, status_code=503
        )
