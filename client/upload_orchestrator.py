"""
Client-side coordination of the photo upload → analysis flow.

The flow is a small state machine held in an immutable ``UploadState`` and
advanced only through ``reduce``, so any front-end (CLI, desktop, web bridge)
can render it without owning the transition rules::

    idle -> uploading -> ready_to_analyze | idle (error)
    ready_to_analyze -> analyzing -> complete -> idle
                                  -> ready_to_analyze (failed, same URLs)
    ready_to_analyze -> idle (cancelled; uploaded blobs are left in storage)

``UploadOrchestrator`` drives the machine against an uploader and an analyzer
(normally ``client.api_client.InventoryApiClient``).
"""
import asyncio
import logging
import mimetypes
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from core.exceptions import UploadError

logger = logging.getLogger(__name__)


class AnalysisRequestError(Exception):
    """The analysis endpoint answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidTransition(ValueError):
    """An event arrived in a phase that does not accept it."""


class UploadPhase(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    READY_TO_ANALYZE = "ready_to_analyze"
    ANALYZING = "analyzing"
    COMPLETE = "complete"


@dataclass(frozen=True)
class UploadState:
    phase: UploadPhase = UploadPhase.IDLE
    batch_id: int = 0
    selected: int = 0
    pending_urls: Tuple[str, ...] = ()
    uploaded: int = 0
    failed: int = 0
    items: Tuple[Dict[str, Any], ...] = ()
    error: Optional[str] = None


# Events

@dataclass(frozen=True)
class UploadStarted:
    file_count: int


@dataclass(frozen=True)
class UploadFinished:
    urls: Tuple[str, ...]
    failed: int


@dataclass(frozen=True)
class AnalysisStarted:
    pass


@dataclass(frozen=True)
class AnalysisSucceeded:
    items: Tuple[Dict[str, Any], ...]


@dataclass(frozen=True)
class AnalysisFailed:
    error: str


@dataclass(frozen=True)
class BatchCancelled:
    pass


@dataclass(frozen=True)
class BatchReset:
    pass


def _require(state: UploadState, event, *phases: UploadPhase):
    if state.phase not in phases:
        raise InvalidTransition(f"{type(event).__name__} not allowed while {state.phase.value}")


def reduce(state: UploadState, event) -> UploadState:
    """Return the state that follows ``event``; illegal events raise InvalidTransition"""
    if isinstance(event, UploadStarted):
        _require(state, event, UploadPhase.IDLE)
        return UploadState(
            phase=UploadPhase.UPLOADING,
            batch_id=state.batch_id + 1,
            selected=event.file_count,
        )

    if isinstance(event, UploadFinished):
        _require(state, event, UploadPhase.UPLOADING)
        if not event.urls:
            return replace(
                state,
                phase=UploadPhase.IDLE,
                pending_urls=(),
                uploaded=0,
                failed=event.failed,
                error="No files could be uploaded",
            )
        return replace(
            state,
            phase=UploadPhase.READY_TO_ANALYZE,
            pending_urls=tuple(event.urls),
            uploaded=len(event.urls),
            failed=event.failed,
            error=None,
        )

    if isinstance(event, AnalysisStarted):
        _require(state, event, UploadPhase.READY_TO_ANALYZE)
        return replace(state, phase=UploadPhase.ANALYZING, error=None)

    if isinstance(event, AnalysisSucceeded):
        _require(state, event, UploadPhase.ANALYZING)
        return replace(state, phase=UploadPhase.COMPLETE, pending_urls=(), items=tuple(event.items))

    if isinstance(event, AnalysisFailed):
        _require(state, event, UploadPhase.ANALYZING)
        return replace(state, phase=UploadPhase.READY_TO_ANALYZE, error=event.error)

    if isinstance(event, BatchCancelled):
        _require(state, event, UploadPhase.READY_TO_ANALYZE)
        return UploadState(batch_id=state.batch_id)

    if isinstance(event, BatchReset):
        _require(state, event, UploadPhase.COMPLETE)
        return UploadState(batch_id=state.batch_id)

    raise InvalidTransition(f"Unknown event: {event!r}")


@dataclass(frozen=True)
class SelectedFile:
    name: str
    data: bytes = field(repr=False)
    content_type: Optional[str] = None

    @classmethod
    def from_path(cls, path: str) -> "SelectedFile":
        with open(path, "rb") as f:
            data = f.read()
        content_type, _ = mimetypes.guess_type(path)
        return cls(name=os.path.basename(path), data=data, content_type=content_type)


@dataclass(frozen=True)
class UploadOutcome:
    urls: Tuple[str, ...]
    succeeded: int
    failed: int


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = "default"


class Uploader(Protocol):
    async def upload_image(self, file: SelectedFile) -> str: ...


class Analyzer(Protocol):
    async def analyze_items(self, image_urls: List[str]) -> List[Dict[str, Any]]: ...


class UploadOrchestrator:
    def __init__(
        self,
        uploader: Uploader,
        analyzer: Analyzer,
        on_change: Optional[Callable[[UploadState], None]] = None,
        on_notify: Optional[Callable[[Notification], None]] = None,
    ):
        self.uploader = uploader
        self.analyzer = analyzer
        self.on_change = on_change
        self.on_notify = on_notify
        self._state = UploadState()

    @property
    def state(self) -> UploadState:
        return self._state

    def _dispatch(self, event) -> UploadState:
        self._state = reduce(self._state, event)
        logger.debug(f"Upload state -> {self._state.phase.value} (batch {self._state.batch_id})")
        if self.on_change:
            self.on_change(self._state)
        return self._state

    def _notify(self, title: str, description: str, variant: str = "default"):
        if self.on_notify:
            self.on_notify(Notification(title, description, variant))

    async def _upload_one(self, file: SelectedFile) -> Optional[str]:
        try:
            return await self.uploader.upload_image(file)
        except UploadError as e:
            logger.warning(f"Upload failed for {file.name}: {e.message}")
            return None
        except Exception as e:
            # CancelledError is not an Exception and still propagates
            logger.exception(f"Unexpected error uploading {file.name}: {e}")
            return None

    async def upload(self, files: Sequence[SelectedFile]) -> UploadOutcome:
        """Upload a fresh batch; individual failures are counted, never fatal"""
        if not files:
            return UploadOutcome(urls=(), succeeded=0, failed=0)

        self._dispatch(UploadStarted(len(files)))
        results = await asyncio.gather(*(self._upload_one(f) for f in files))

        urls = tuple(url for url in results if url)
        failed = len(files) - len(urls)
        self._dispatch(UploadFinished(urls, failed))

        if urls:
            description = f"{len(urls)} file(s) uploaded"
            if failed:
                description += f", {failed} failed"
            self._notify("Upload Complete", description + ". Ready to analyze.")
        else:
            self._notify("Upload Failed", "No files could be uploaded.", "destructive")

        return UploadOutcome(urls=urls, succeeded=len(urls), failed=failed)

    async def analyze(self) -> List[Dict[str, Any]]:
        """Analyze the pending URLs; on failure the batch stays ready for a retry"""
        self._dispatch(AnalysisStarted())
        urls = list(self._state.pending_urls)

        try:
            items = await self.analyzer.analyze_items(urls)
        except AnalysisRequestError as e:
            self._fail_analysis(e.message)
            raise
        except Exception as e:
            logger.exception(f"Unexpected error during analysis: {e}")
            self._fail_analysis("Analysis failed")
            raise

        self._dispatch(AnalysisSucceeded(tuple(items)))
        self._notify("Analysis Complete", f"{len(items)} item(s) added to your inventory.")
        self._dispatch(BatchReset())
        return list(items)

    def _fail_analysis(self, message: str):
        self._dispatch(AnalysisFailed(message))
        self._notify("Analysis Failed", message, "destructive")

    def cancel(self):
        """Drop the pending URLs; files already in storage stay there"""
        self._dispatch(BatchCancelled())
        self._notify("Upload Cancelled", "The uploaded photos were not analyzed.")
