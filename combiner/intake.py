import itertools
import logging
import os

from .config import CombinerConfig
from .formatting import format_file_size
from .models import (
    UNKNOWN_FILE_NAME,
    AddResult,
    CandidateFile,
    Rejection,
    RejectionKind,
)

logger = logging.getLogger(__name__)

GENERIC_CONTENT_TYPES = {"", "application/octet-stream"}


class IntakeManager:
    """Owns the ordered accepted set of files staged for merging.

    Every addition is screened for type and duplicates, then the whole batch
    is admitted only if the aggregate cap still holds afterwards.
    """

    def __init__(self, config=None):
        self.config = config or CombinerConfig()
        self._files = []
        self._ids = itertools.count(1)

    @property
    def files(self):
        return tuple(self._files)

    def __len__(self):
        return len(self._files)

    def __iter__(self):
        return iter(self._files)

    def get(self, file_id):
        for f in self._files:
            if f.id == file_id:
                return f
        return None

    def is_pdf(self, upload):
        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        if content_type not in GENERIC_CONTENT_TYPES:
            return content_type in self.config.accepted_types
        _, ext = os.path.splitext(upload.name or "")
        return ext.lower() in self.config.accepted_extensions

    def _is_duplicate(self, name, size, pending):
        return any(f.name == name and f.size == size for f in itertools.chain(self._files, pending))

    def add_files(self, uploads):
        uploads = list(uploads or ())
        if not uploads:
            return AddResult()

        pending = []
        rejections = []

        for upload in uploads:
            name = (upload.name if upload is not None else None) or UNKNOWN_FILE_NAME

            if upload is None or not upload.name or not self.is_pdf(upload):
                rejections.append(Rejection(RejectionKind.UNSUPPORTED_TYPE, name))
                continue

            if self._is_duplicate(upload.name, upload.size, pending):
                rejections.append(Rejection(RejectionKind.DUPLICATE, name))
                continue

            pending.append(
                CandidateFile(
                    id=next(self._ids),
                    name=upload.name,
                    size=upload.size,
                    data=upload.data,
                    content_type=upload.content_type or "",
                )
            )

        new_total = self.current_total_size() + sum(f.size for f in pending)
        if new_total > self.config.max_total_size:
            logger.info(
                "Rejected batch of %d file(s): total %d bytes over cap %d",
                len(uploads), new_total, self.config.max_total_size,
            )
            rejections.append(
                Rejection(
                    RejectionKind.AGGREGATE_LIMIT_EXCEEDED,
                    detail=format_file_size(self.config.max_total_size),
                )
            )
            return AddResult(rejections=tuple(rejections))

        self._files.extend(pending)
        if rejections:
            logger.info("Skipped %d file(s): %s", len(rejections),
                        ", ".join(r.message for r in rejections))
        logger.info("Added %d file(s), total size now %d bytes", len(pending), new_total)
        return AddResult(added=tuple(pending), rejections=tuple(rejections))

    def remove_file(self, file_id):
        before = len(self._files)
        self._files = [f for f in self._files if f.id != file_id]
        return len(self._files) != before

    def reset(self):
        self._files = []

    def current_total_size(self):
        return sum(f.size for f in self._files)

    def summary(self):
        total = self.current_total_size()
        cap = self.config.max_total_size
        return {
            "files": [f.to_dict() for f in self._files],
            "count": len(self._files),
            "total_size": total,
            "total_size_formatted": format_file_size(total),
            "max_total_size": cap,
            "max_total_size_formatted": format_file_size(cap),
            "size_percentage": min(total / cap * 100, 100),
            "over_limit": total > cap,
        }
