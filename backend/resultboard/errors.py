"""Error taxonomy shared by services and routes.

Services raise these; ``create_app`` registers a single handler that turns
them into ``{"error": ..., "code": ...}`` JSON responses.
"""


class ResultBoardError(Exception):
    status_code = 500
    code = 'internal_error'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or self.__class__.__doc__ or self.code
        self.details = details

    def to_dict(self):
        payload = {'error': self.message, 'code': self.code}
        if self.details is not None:
            payload['details'] = self.details
        return payload


class ValidationError(ResultBoardError):
    """Invalid request"""
    status_code = 400
    code = 'validation_error'


class InvalidTimeFormat(ValidationError):
    """Invalid time"""
    code = 'invalid_time'


class NotFound(ResultBoardError):
    """Not found"""
    status_code = 404
    code = 'not_found'


class DuplicateCode(ResultBoardError):
    """Game code already exists"""
    status_code = 409
    code = 'duplicate_code'


class StoreUnavailable(ResultBoardError):
    """Storage unavailable"""
    status_code = 503
    code = 'store_unavailable'
