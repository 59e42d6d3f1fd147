"""Exceptions raised by the fix pipeline.

Scan and classification failures never surface as exceptions; only missing
documents and I/O problems do.
"""

from promise_rejection_fixer.core.models import FixResult


class PromiseFixerError(Exception):
    """Base exception for the promise rejection fixer."""


class NoActiveDocumentError(PromiseFixerError):
    """Raised when there is no readable document to operate on.

    The whole operation is aborted before any document is modified.
    """


class WorkspaceError(PromiseFixerError, ValueError):
    """Raised when workspace_root does not exist or is not a directory."""


class FixWriteError(PromiseFixerError):
    """Raised when writing a fixed file fails part-way through a batch.

    Attributes:
        path: File whose backup or write failed.
        completed: Results for the files processed before the failure, in order.
            Those with ``written`` set were already rewritten on disk.
    """

    def __init__(self, message: str, path: str, completed: list[FixResult]) -> None:
        super().__init__(message)
        self.path = path
        self.completed = completed
