"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; the error handler registered in ``routes`` turns
them into ``{"error": message}`` JSON bodies with the matching status.
"""


class PortalError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message}


class ValidationError(PortalError):
    status_code = 400
    default_message = 'Invalid request'


class Unauthenticated(PortalError):
    status_code = 401
    default_message = 'Not authenticated'


class Forbidden(PortalError):
    status_code = 403
    default_message = 'Not authorized'


class NotFound(PortalError):
    status_code = 404
    default_message = 'Not found'


class Conflict(PortalError):
    status_code = 409
    default_message = 'Conflict'
