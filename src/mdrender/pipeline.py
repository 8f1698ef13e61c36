"""Single-conversion pipeline: buffers, renderer, document, timing."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .engine import Buffer, Document, DocumentAugmentation, Localization
from .exceptions import AllocationError
from .flags import Extension
from .options import ResolvedConfiguration
from .renderers import (
    AugmentationSource,
    RendererHandle,
    RendererLibrary,
    create_renderer,
)

TIMING_FAILURE_MESSAGE = "Failed to get the time."

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineDependencies:
    """Callable seams for the document library and the clock."""

    buffer_factory: Callable[[int], Any] = Buffer
    document_factory: Callable[
        [Any, Extension, Optional[DocumentAugmentation], int], Any
    ] = Document
    renderer_library: Optional[RendererLibrary] = None
    clock: Callable[[], float] = time.perf_counter


@dataclass(frozen=True)
class RenderResult:
    """Rendered bytes plus the timing outcome of one run."""

    output: bytes
    elapsed: Optional[float] = None
    timing_error: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.output)

    @property
    def timing_report(self) -> Optional[str]:
        if self.timing_error is not None:
            return self.timing_error
        if self.elapsed is None:
            return None
        return format_elapsed(self.elapsed)


def format_elapsed(elapsed: float) -> str:
    """Milliseconds under a second, seconds otherwise."""

    if elapsed < 1:
        return "Time spent on rendering: %7.2f ms." % (elapsed * 1e3)
    return "Time spent on rendering: %6.3f s." % elapsed


def run_pipeline(
    data: bytes,
    config: ResolvedConfiguration,
    *,
    localization: Optional[Localization] = None,
    augmentation_source: Optional[AugmentationSource] = None,
    dependencies: Optional[PipelineDependencies] = None,
    logger: Optional[logging.Logger] = None,
) -> RenderResult:
    """Render ``data`` once according to ``config``.

    The input buffer, output buffer, document and renderer are released in
    that order whether rendering succeeds or raises. Timestamps are only
    taken when ``config.show_time`` is set; a clock failure never discards
    the rendered output and is reported through
    :attr:`RenderResult.timing_error`.
    """

    deps = dependencies or PipelineDependencies()
    log = logger or _logger
    local = localization or Localization()

    log.info(
        "Starting render",
        extra={
            "renderer": config.renderer.value,
            "input_bytes": len(data),
            "extensions": int(config.extensions),
            "render_flags": int(config.render_flags),
            "toc_level": config.toc_level,
        },
    )

    ib = ob = document = None
    handle: Optional[RendererHandle] = None
    started: Optional[float] = None
    finished: Optional[float] = None
    try:
        ib = _allocate("input buffer", deps.buffer_factory, config.input_unit)
        ib.set(bytes(data))

        handle = create_renderer(
            config.renderer,
            config.render_flags,
            config.toc_level,
            local,
            library=deps.renderer_library,
            augmentation_source=augmentation_source,
        )
        document = _allocate(
            "document",
            deps.document_factory,
            handle.renderer,
            config.extensions,
            handle.augmentation,
            config.max_nesting,
        )
        ob = _allocate("output buffer", deps.buffer_factory, config.output_unit)

        if config.show_time:
            started = _read_clock(deps.clock, log)
        try:
            document.render(ob, ib.data, ib.size)
        except MemoryError as exc:
            raise AllocationError("Out of memory while rendering.") from exc
        if config.show_time:
            finished = _read_clock(deps.clock, log)

        output = bytes(ob.data[: ob.size])
    except Exception:
        log.exception("Render failed", extra={"renderer": config.renderer.value})
        raise
    finally:
        _release(ib, ob, document, handle)

    elapsed: Optional[float] = None
    timing_error: Optional[str] = None
    if config.show_time:
        if started is None or finished is None:
            timing_error = TIMING_FAILURE_MESSAGE
        else:
            elapsed = finished - started

    log.info(
        "Finished render",
        extra={
            "renderer": config.renderer.value,
            "output_bytes": len(output),
            "elapsed_seconds": elapsed,
            "timing_error": timing_error,
        },
    )
    return RenderResult(output=output, elapsed=elapsed, timing_error=timing_error)


def _allocate(what: str, factory: Callable[..., Any], *args: Any) -> Any:
    try:
        resource = factory(*args)
    except MemoryError as exc:
        raise AllocationError(f"Unable to allocate the {what}.") from exc
    if resource is None:
        raise AllocationError(f"Unable to allocate the {what}.")
    return resource


def _read_clock(
    clock: Callable[[], float], log: logging.Logger
) -> Optional[float]:
    try:
        return clock()
    except OSError as exc:
        log.warning("Clock read failed", extra={"error": str(exc)})
        return None


def _release(
    ib: Any, ob: Any, document: Any, handle: Optional[RendererHandle]
) -> None:
    try:
        if ib is not None:
            ib.free()
    finally:
        try:
            if ob is not None:
                ob.free()
        finally:
            try:
                if document is not None:
                    document.free()
            finally:
                if handle is not None:
                    handle.release()


__all__ = [
    "PipelineDependencies",
    "RenderResult",
    "TIMING_FAILURE_MESSAGE",
    "format_elapsed",
    "run_pipeline",
]
