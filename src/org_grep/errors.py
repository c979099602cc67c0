"""Exception classes for org-grep.

Fatal errors stop the run before or during setup. Recoverable errors are
raised for one repository, directory or file and never end the run.
"""

from typing import Optional


class OrgGrepError(Exception):
    """Base exception for org-grep errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class FatalError(OrgGrepError):
    """Error that terminates the whole run."""

    pass


class ConfigError(FatalError):
    """Exception raised for invalid options, patterns or log levels."""

    pass


class AuthError(FatalError):
    """Exception raised when no credential can be found for a host."""

    pass


class ListError(FatalError):
    """Exception raised when listing repositories fails."""

    pass


class RecoverableError(OrgGrepError):
    """Error confined to one repository, directory or file."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, str(cause) if cause is not None else None)
        self.cause = cause


class CloneError(RecoverableError):
    """Exception raised when a repository can not be cloned."""

    def __init__(self, repository: str, cause: Optional[BaseException] = None):
        super().__init__(f"can not clone {repository!r}", cause)
        self.repository = repository


class DirReadError(RecoverableError):
    """Exception raised when a directory of a working tree can not be listed."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        super().__init__(f"can not list {path or '/'!r}", cause)
        self.path = path


class FileReadError(RecoverableError):
    """Exception raised when a file of a working tree can not be read."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        super().__init__(f"can not read {path!r}", cause)
        self.path = path
