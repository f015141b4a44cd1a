"""Optical music recognition for printed sheet music.

This package turns a raster image of printed sheet music into the staves it
contains and the pitched note heads on the first staff, each with a
confidence score.

The main processing pipeline consists of:
1. Image loading and validation
2. Grayscale conversion, resizing and normalization
3. Binarization with Otsu's method or a fixed threshold
4. Staff line detection from the horizontal projection
5. Note head detection by disk convolution and non-maximum suppression
6. Mapping of note positions to pitches for the chosen clef

Example:
    Basic usage through the pipeline API:

    >>> from sheet_music_ocr.pipeline import recognize_sheet_music
    >>>
    >>> result = recognize_sheet_music("score.png", clef="treble")
    >>> [note.name for note in result.detected_notes]
"""
