import logging
import threading

import cv2
import numpy as np
import pytest

from sheet_music_ocr.backend import NumericBackend, get_default_backend


class FailingBuffer:
    def release(self):
        raise RuntimeError("device lost")


class CountingBuffer:
    def __init__(self):
        self.released = 0

    def release(self):
        self.released += 1


def test_initializes_once(monkeypatch):
    calls = []
    monkeypatch.setattr(cv2, "setUseOptimized", lambda flag: calls.append(flag))
    backend = NumericBackend()
    assert not backend.initialized

    threads = [threading.Thread(target=backend.ensure_initialized) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    backend.ensure_initialized()

    assert backend.initialized
    assert calls == [True]


def test_scope_tracks_and_releases(backend):
    a = np.zeros((4, 4))
    b = np.ones((4, 4))
    with backend.scope() as buffers:
        assert buffers.track(a) is a
        buffers.track(b)
        buffers.track(a)
        buffers.track(None)
        assert len(buffers) == 2
        assert backend.live_buffers == 2
        buffers.release(a)
        assert backend.live_buffers == 1
    assert backend.live_buffers == 0


def test_scope_releases_on_exception(backend):
    tracked = CountingBuffer()
    with pytest.raises(ValueError):
        with backend.scope() as buffers:
            buffers.track(tracked)
            raise ValueError("stage failed")
    assert tracked.released == 1
    assert backend.live_buffers == 0


def test_release_failure_is_logged(backend, caplog):
    with caplog.at_level(logging.WARNING):
        with backend.scope() as buffers:
            buffers.track(FailingBuffer())
    assert backend.live_buffers == 0
    assert "Failed to release buffer" in caplog.text


def test_release_untracked_is_noop(backend):
    with backend.scope() as buffers:
        buffers.release(np.zeros(3))
        assert backend.live_buffers == 0


def test_materialize_copies_views(backend):
    base = np.arange(20).reshape(4, 5)
    view = base[1:3]
    out = backend.materialize(view)
    assert out.base is None
    assert not np.shares_memory(out, base)
    assert np.array_equal(out, view)

    transposed = backend.materialize(np.ones((3, 2)).T)
    assert transposed.flags.c_contiguous
    assert transposed.shape == (2, 3)


def test_materialize_keeps_owned_arrays(backend):
    owned = np.zeros((3, 3))
    assert backend.materialize(owned) is owned


def test_default_backend_is_shared():
    assert get_default_backend() is get_default_backend()
