class RefStoreError(Exception):
    """Base class for every error raised by refstore."""


class NotFoundError(RefStoreError, KeyError):
    """Raised when no record is stored under the requested key."""

    def __init__(self, key: bytes):
        self.key = key
        super().__init__(f"No record found for key {key.hex()}.")

    def __str__(self) -> str:
        return self.args[0]


class ValueMismatchError(RefStoreError, ValueError):
    """Raised when saving a value that differs from the one already stored under the key."""


class CorruptRecordError(RefStoreError, ValueError):
    """Raised when a stored record cannot be decoded."""


class ReferenceCountOverflowError(RefStoreError, ValueError):
    """Raised when a reference count would exceed the width of its on-disk field."""


class EngineFailureError(RefStoreError):
    """Raised when the underlying engine fails to read, write or commit."""


class TransactionConflictError(EngineFailureError):
    """Raised when a concurrent write invalidated the transaction before commit.

    The transaction has been discarded; the caller may retry the whole operation.
    """
