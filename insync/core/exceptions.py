"""Domain errors raised by the service modules and mapped to responses by the views"""


class InSyncError(Exception):
    """Base class for errors the views turn into a JSON error response"""
    status_code = 400
    default_message = 'The request could not be completed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class WorkspaceMismatchError(InSyncError):
    status_code = 403
    default_message = 'This record belongs to another workspace'


class ProjectNotFoundError(InSyncError):
    status_code = 404
    default_message = 'Project does not exist'


class ProjectConflictError(InSyncError):
    status_code = 409
    default_message = 'Project was modified concurrently, please retry'


class StorageError(InSyncError):
    status_code = 500
    default_message = 'File storage is unavailable'
