"""Errors raised or reported by a reconciliation pass."""


class ReconcileError(Exception):
    """Base class for reconciliation errors."""


class InvariantViolation(ReconcileError):
    """Stored or declared state breaks a rule the reconciler relies on."""


class BackendWriteFailure(ReconcileError):
    """A create, update or status write was rejected by a backend.

    The backend error is kept unmodified as ``cause``.
    """

    def __init__(self, operation, ref, cause):
        super().__init__(f"{operation} failed for {ref}: {cause}")
        self.operation = operation
        self.ref = ref
        self.cause = cause
        self.__cause__ = cause
