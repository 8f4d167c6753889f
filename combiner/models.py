import io
from dataclasses import dataclass, field
from enum import Enum

from .formatting import format_file_size

UNKNOWN_FILE_NAME = "Unknown file"
PDF_MIMETYPE = "application/pdf"


@dataclass(frozen=True)
class Upload:
    """A raw file handle as handed over by the picker or a drop event."""

    name: str
    content_type: str
    data: bytes

    @property
    def size(self):
        return len(self.data)


@dataclass(frozen=True)
class CandidateFile:
    id: int
    name: str
    size: int
    data: bytes = field(repr=False)
    content_type: str = PDF_MIMETYPE

    @property
    def size_formatted(self):
        return format_file_size(self.size)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "size_formatted": self.size_formatted,
        }


class RejectionKind(Enum):
    UNSUPPORTED_TYPE = "unsupported type"
    DUPLICATE = "duplicate"
    AGGREGATE_LIMIT_EXCEEDED = "aggregate limit exceeded"


@dataclass(frozen=True)
class Rejection:
    kind: RejectionKind
    # None for batch-level rejections
    name: str = None
    detail: str = ""

    @property
    def message(self):
        if self.kind is RejectionKind.UNSUPPORTED_TYPE:
            return f"{self.name}: Only PDF files are allowed"
        if self.kind is RejectionKind.DUPLICATE:
            return f"{self.name}: Already added"
        return f"Total size would exceed {self.detail} limit"

    def to_dict(self):
        return {"reason": self.kind.value, "name": self.name, "message": self.message}


@dataclass(frozen=True)
class AddResult:
    added: tuple = ()
    rejections: tuple = ()

    @property
    def added_count(self):
        return len(self.added)

    @property
    def batch_rejected(self):
        return any(r.kind is RejectionKind.AGGREGATE_LIMIT_EXCEEDED for r in self.rejections)


class ProcessingState(Enum):
    IDLE = "idle"
    MERGING = "merging"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class MergeArtifact:
    data: bytes = field(repr=False)
    page_count: int
    source_count: int
    filename: str
    mimetype: str = PDF_MIMETYPE

    @property
    def size(self):
        return len(self.data)

    def to_stream(self):
        return io.BytesIO(self.data)


@dataclass(frozen=True)
class Notice:
    level: str
    message: str

    @classmethod
    def success(cls, message):
        return cls("success", message)

    @classmethod
    def error(cls, message):
        return cls("error", message)

    def to_dict(self):
        return {"level": self.level, "message": self.message}
