"""
Error taxonomy for project export / import.

Messages name the filename or step involved, never an absolute filesystem path,
so they can be returned to API clients as-is.
"""


class ShowComposerError(Exception):
    """Base class for every error raised by the export / import services."""


class DocumentValidationError(ShowComposerError):
    """Malformed project document, missing project name, or unsafe filename."""


class NotFoundError(ShowComposerError):
    pass


class AssetNotFoundError(NotFoundError):
    def __init__(self, filename: str):
        super().__init__(f"Asset '{filename}' not found in the pool.")
        self.filename = filename


class SessionNotFoundError(NotFoundError):
    def __init__(self, session_id: str):
        super().__init__("Import session not found or expired.")
        self.session_id = session_id


class ProjectNotFoundError(NotFoundError):
    def __init__(self, name: str):
        super().__init__(f"Project '{name}' not found.")
        self.name = name


class StorageError(ShowComposerError):
    """Disk full, permission denied, failed copy and similar I/O failures."""

    def __init__(self, message: str, filename: str = None):
        super().__init__(message)
        self.filename = filename


class AssetExistsError(StorageError):
    def __init__(self, filename: str):
        super().__init__(f"Asset '{filename}' already exists in the pool.", filename)


class CommitFailedError(StorageError):
    def __init__(self, session_id: str, step: str, filename: str = None):
        where = f" ({filename})" if filename else ""
        super().__init__(f"Import commit failed during {step}{where}.", filename)
        self.session_id = session_id
        self.step = step


class ArchiveFormatError(ShowComposerError):
    """Not a zip, no data.json, invalid JSON, or a member escaping the workspace."""


class UploadRejectedError(ShowComposerError):
    """Uploaded file has a disallowed MIME type or exceeds the size limit."""
