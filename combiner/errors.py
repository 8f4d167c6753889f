class CombinerError(Exception):
    """Base class for everything raised by the combiner core."""


class InvalidStateError(CombinerError):
    """Operation not permitted in the current processing state."""


class MergeError(CombinerError):
    """A merge attempt failed; the orchestrator is left in the error state."""

    reason = "merge failed"

    def __init__(self, message, file_name=None):
        super().__init__(message)
        self.file_name = file_name


class DocumentDecodeError(MergeError):
    reason = "decode failed"


class SerializationError(MergeError):
    reason = "serialization failed"


class MergeTimeoutError(MergeError):
    reason = "timed out"


class MergeCancelledError(MergeError):
    reason = "cancelled"
