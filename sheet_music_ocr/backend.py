"""Numeric backend handle and scoped buffer ownership.

OpenCV does the heavy array work of the pipeline. Its global settings are
configured once, the first time a :class:`NumericBackend` is used, and the
handle is passed explicitly into the pipeline so tests can build isolated
instances. A process-wide default handle is available through
:func:`get_default_backend`.

Large per-invocation buffers are registered with a :class:`BufferScope`,
which releases them when the scope exits, whether the pipeline finished,
returned early or raised.
"""

import logging
import threading
from contextlib import contextmanager
from collections.abc import Iterator

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class BufferScope:
    """Tracks the buffers of one pipeline invocation.

    Buffers are registered with :meth:`track` and dropped either one at a
    time with :meth:`release` as soon as the next stage no longer needs
    them, or all at once by :meth:`release_all` when the scope closes.
    Releasing drops the scope's reference; the memory is freed once the
    caller has dropped its own references as well.
    """

    def __init__(self, backend: "NumericBackend"):
        self._backend = backend
        self._buffers: dict[int, object] = {}

    def __len__(self) -> int:
        return len(self._buffers)

    def track(self, buffer):
        """Register ``buffer`` with the scope and return it unchanged."""
        if buffer is not None and id(buffer) not in self._buffers:
            self._buffers[id(buffer)] = buffer
            self._backend._adjust_live(1)
        return buffer

    def release(self, buffer) -> None:
        """Release a single tracked buffer early."""
        if buffer is None:
            return
        tracked = self._buffers.pop(id(buffer), None)
        if tracked is not None:
            self._backend._adjust_live(-1)
            self._backend.free(tracked)

    def release_all(self) -> None:
        """Release every buffer still tracked by the scope."""
        while self._buffers:
            _, buffer = self._buffers.popitem()
            self._backend._adjust_live(-1)
            self._backend.free(buffer)


class NumericBackend:
    """Handle for the accelerated array backend (OpenCV).

    Attributes:
        num_threads: Thread count handed to OpenCV, or None to keep its default.
        use_optimized: Whether OpenCV may use its optimized code paths.
    """

    def __init__(self, num_threads: int | None = None, use_optimized: bool = True):
        self.num_threads = num_threads
        self.use_optimized = use_optimized
        self._init_lock = threading.Lock()
        self._count_lock = threading.Lock()
        self._initialized = False
        self._live_buffers = 0

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def live_buffers(self) -> int:
        """Number of buffers currently tracked by open scopes."""
        return self._live_buffers

    def ensure_initialized(self) -> None:
        """Configure OpenCV once; later calls return immediately."""
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            cv2.setUseOptimized(self.use_optimized)
            if self.num_threads is not None:
                cv2.setNumThreads(self.num_threads)
            self._initialized = True
            logger.info(
                f"Numeric backend initialized: OpenCV {cv2.__version__}, "
                f"optimized={cv2.useOptimized()}, threads={cv2.getNumThreads()}"
            )

    def materialize(self, array: np.ndarray) -> np.ndarray:
        """Return a contiguous array that owns its memory.

        Called on every stage output so that no stage keeps a view into a
        buffer owned by the stage before it.
        """
        if array.base is not None or not array.flags.c_contiguous:
            return np.array(array, copy=True, order="C")
        return array

    def free(self, buffer) -> None:
        """Release backend resources held by ``buffer``.

        Failures are logged and swallowed: the result computed from the
        buffer is already complete.
        """
        release = getattr(buffer, "release", None)
        if not callable(release):
            return
        try:
            release()
        except Exception as e:
            logger.warning(f"Failed to release buffer {type(buffer).__name__}: {e}")

    @contextmanager
    def scope(self) -> Iterator[BufferScope]:
        """Open a buffer scope that is released on every exit path."""
        buffers = BufferScope(self)
        try:
            yield buffers
        finally:
            buffers.release_all()

    def _adjust_live(self, delta: int) -> None:
        with self._count_lock:
            self._live_buffers += delta


_default_backend: NumericBackend | None = None
_default_lock = threading.Lock()


def get_default_backend() -> NumericBackend:
    """Return the process-wide backend, creating it on first use."""
    global _default_backend
    if _default_backend is None:
        with _default_lock:
            if _default_backend is None:
                _default_backend = NumericBackend()
    return _default_backend
