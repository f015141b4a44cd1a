import numpy as np
from sheet_music_ocr.models.pipeline_models import (
    PreprocessResult,
    BinaryResult,
    StaffResult,
    NoteResult,
)


def test_preprocessresult_defaults():
    p = PreprocessResult()
    assert p.gray is None
    assert p.resized is None
    assert p.scale == 1.0


def test_binaryresult_defaults():
    b = BinaryResult()
    assert b.binary is None
    assert b.threshold == 0.0


def test_staffresult_defaults():
    s = StaffResult()
    assert s.staves == []
    assert isinstance(s.projection, np.ndarray)
    assert s.projection.size == 0
    assert s.peaks == []


def test_noteresult_defaults():
    n = NoteResult()
    assert n.notes == []
    assert n.max_response == 0.0


def test_pipeline_models_arbitrary_types():
    b = BinaryResult(binary=np.ones((1, 1), dtype=np.uint8), threshold=0.5)
    assert b.binary.shape == (1, 1)
