"""Error taxonomy for the messaging core. Each error carries its HTTP status and a stable code."""


class MessagingError(Exception):
    status_code = 400
    code = "messaging_error"


class NotFoundError(MessagingError):
    status_code = 404
    code = "not_found"


class ForbiddenError(MessagingError):
    status_code = 403
    code = "forbidden"


class InvalidParticipantError(MessagingError):
    status_code = 422
    code = "invalid_participant"


class ConflictError(MessagingError):
    status_code = 409
    code = "conflict"


class TransientStoreError(MessagingError):
    status_code = 503
    code = "store_unavailable"
