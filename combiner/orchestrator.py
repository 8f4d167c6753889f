import asyncio
import logging
import threading

from .backend import PdfBackend
from .errors import (
    InvalidStateError,
    MergeCancelledError,
    MergeError,
    MergeTimeoutError,
)
from .models import MergeArtifact, ProcessingState

logger = logging.getLogger(__name__)

MIN_FILES_TO_MERGE = 2


class MergeOrchestrator:
    """Drives the PDF backend across the accepted set and tracks processing state.

    idle -> merging -> complete | error, and back to idle on reset.
    Files are decoded and appended strictly one after another; the first
    failure ends the merge and no partial artifact is kept.
    """

    def __init__(self, intake, backend=None, config=None):
        self.intake = intake
        self.backend = backend or PdfBackend()
        self.config = config or intake.config
        self.state = ProcessingState.IDLE
        self.artifact = None
        self.last_error = None
        self._cancel = threading.Event()

    @property
    def can_merge(self):
        return (
            self.state is ProcessingState.IDLE
            and len(self.intake) >= MIN_FILES_TO_MERGE
            and self.intake.current_total_size() <= self.config.max_total_size
        )

    def _check_can_merge(self, files):
        if self.state is not ProcessingState.IDLE:
            raise InvalidStateError(f"Cannot merge while {self.state.value}")
        if len(files) < MIN_FILES_TO_MERGE:
            raise InvalidStateError("Please select at least 2 PDF files")
        total = sum(f.size for f in files)
        if total > self.config.max_total_size:
            raise InvalidStateError("Total size exceeds the configured limit")

    async def merge(self, files=None):
        files = tuple(self.intake.files if files is None else files)
        self._check_can_merge(files)

        self.state = ProcessingState.MERGING
        self.artifact = None
        self.last_error = None
        self._cancel.clear()
        logger.info("Merging %d file(s)", len(files))

        try:
            artifact = await self._merge(files)
        except MergeError as e:
            self._fail(e)
            raise
        except Exception as e:
            err = MergeError(f"Unexpected merge failure: {e}")
            self._fail(err)
            raise err from e

        self.artifact = artifact
        self.state = ProcessingState.COMPLETE
        logger.info(
            "Merged %d file(s) into %d page(s), %d bytes",
            artifact.source_count, artifact.page_count, artifact.size,
        )
        return artifact

    def _fail(self, error):
        self.state = ProcessingState.ERROR
        self.artifact = None
        self.last_error = error
        if error.file_name:
            logger.error("Merge failed on %s: %s", error.file_name, error)
        else:
            logger.error("Merge failed: %s", error)

    async def _merge(self, files):
        backend = self.backend
        destination = backend.create_document()

        for f in files:
            self._raise_if_cancelled(f.name)
            source = await self._call(backend.load_document, f.data, f.name, file_name=f.name)
            try:
                pages = backend.copy_pages(destination, source, backend.page_indices(source))
                for page in pages:
                    backend.append_page(destination, page)
            except MergeError:
                raise
            except Exception as e:
                raise MergeError(f"{f.name}: could not copy pages: {e}", f.name) from e
            del source, pages

        self._raise_if_cancelled()
        page_count = backend.page_count(destination)
        data = await self._call(backend.serialize, destination)

        return MergeArtifact(
            data=data,
            page_count=page_count,
            source_count=len(files),
            filename=self.config.output_name,
        )

    async def _call(self, func, *args, file_name=None):
        timeout = self.config.merge_timeout
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)
        except asyncio.TimeoutError:
            target = file_name or "merged document"
            raise MergeTimeoutError(f"{target}: timed out after {timeout:g}s", file_name) from None

    def _raise_if_cancelled(self, file_name=None):
        if self._cancel.is_set():
            raise MergeCancelledError("Merge cancelled", file_name)

    def cancel(self):
        if self.state is not ProcessingState.MERGING:
            return False
        self._cancel.set()
        logger.info("Cancellation requested")
        return True

    def invalidate_result(self):
        """Drop a finished result so the edited accepted set can be merged again."""
        if self.state in (ProcessingState.COMPLETE, ProcessingState.ERROR):
            self.state = ProcessingState.IDLE
            self.artifact = None
            self.last_error = None

    def reset(self):
        if self.state is ProcessingState.MERGING:
            raise InvalidStateError("Cannot reset while merging")
        self.intake.reset()
        self.artifact = None
        self.last_error = None
        self.state = ProcessingState.IDLE

    def export_artifact(self, destination=None):
        if self.state is not ProcessingState.COMPLETE or self.artifact is None:
            raise InvalidStateError("No merged document available")

        if destination is None:
            return self.artifact
        if hasattr(destination, "write"):
            destination.write(self.artifact.data)
        else:
            with open(destination, "wb") as f:
                f.write(self.artifact.data)
        return self.artifact

    def status(self):
        info = {
            "state": self.state.value,
            "can_merge": self.can_merge,
            "artifact": None,
            "error": None,
        }
        if self.artifact is not None:
            info["artifact"] = {
                "filename": self.artifact.filename,
                "page_count": self.artifact.page_count,
                "size": self.artifact.size,
            }
        if self.last_error is not None:
            info["error"] = {
                "reason": self.last_error.reason,
                "message": str(self.last_error),
                "file_name": self.last_error.file_name,
            }
        return info
