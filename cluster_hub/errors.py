"""Error taxonomy shared by services and HTTP handlers."""


class ClusterHubError(Exception):
    status_code = 500
    default_message = 'Server error'

    def __init__(self, message=None, *, detail=None):
        self.message = message or self.default_message
        # Kept for logs only; never returned to the caller.
        self.detail = detail
        super().__init__(self.message)

    def __str__(self):
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


class ClientError(ClusterHubError):
    status_code = 400
    default_message = 'Invalid request'


class UnauthorizedError(ClusterHubError):
    status_code = 401
    default_message = 'Unauthorized'


class ForbiddenError(ClusterHubError):
    status_code = 403
    default_message = 'Forbidden'


class NotFoundError(ClusterHubError):
    status_code = 404
    default_message = 'Not found'


class ConfigurationError(ClusterHubError):
    status_code = 500
    default_message = 'Server is not configured'


class RemoteServiceError(ClusterHubError):
    status_code = 502
    default_message = 'Remote service error'


class RetryableError(ClusterHubError):
    status_code = 503
    default_message = 'Temporary failure, please try again'
