"""Exceptions raised by the recognition pipeline."""


class PipelineError(Exception):
    """Base exception for pipeline processing errors."""

    pass


class ImageLoadError(PipelineError):
    """Exception raised when the input cannot be decoded into pixels."""

    pass


class InvalidImageError(PipelineError):
    """Exception raised when a decoded buffer has no area or bad channels."""

    pass
