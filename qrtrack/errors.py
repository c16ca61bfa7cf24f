"""Error taxonomy shared by the gate, the recorder and the HTTP layer."""


class QRTrackError(Exception):
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {'error': self.message}


class NotFound(QRTrackError):
    status_code = 404
    message = 'QR code not found'


class Expired(QRTrackError):
    # Not an error for the caller: rendered as a regular "expired" answer.
    status_code = 200
    message = 'This QR code has expired or reached maximum scans'

    def to_dict(self):
        return {'expired': True, 'message': self.message}


class PasswordRequired(QRTrackError):
    status_code = 401
    message = 'Password is required'


class InvalidPassword(QRTrackError):
    status_code = 401
    message = 'Invalid password'


class Unauthorized(QRTrackError):
    status_code = 401
    message = 'unauthorized'


class Conflict(QRTrackError):
    status_code = 409
    message = 'QR code was modified concurrently'


class RateLimited(QRTrackError):
    status_code = 429
    message = 'rate exceeded'


class BadRequest(QRTrackError):
    status_code = 400
    message = 'bad request'


class StorageFailure(QRTrackError):
    status_code = 500
    message = 'Internal server error'
