class BackupError(Exception):
    pass


class ToolNotFoundError(BackupError):
    pass


class FileAccessError(BackupError):
    pass


class StreamError(BackupError):
    pass


class DiagnosticError(BackupError):
    """Non-benign text the client tool wrote to stderr."""


class ProcessError(BackupError):
    pass


class ValidationError(BackupError):
    pass


class InvalidArchiveError(BackupError):
    pass
