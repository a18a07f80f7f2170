"""
Exception classes for textseg.

All textseg exceptions inherit from TextSegError,
making it easy to catch all library errors.

Example:
    >>> try:
    ...     result = textseg.detect_regions("scan.png")
    ... except textseg.DecodeError as e:
    ...     print(f"Bad image: {e}")
    ... except textseg.TextSegError as e:
    ...     print(f"textseg error: {e}")
"""


class TextSegError(Exception):
    """
    Base exception for all textseg errors.

    Catch this to handle any textseg-specific error.
    """

    pass


class ResourceUnavailableError(TextSegError):
    """
    Raised when a working buffer or drawing surface cannot be created.

    Fatal for the current run; never retried.
    """

    pass


class DecodeError(TextSegError):
    """
    Raised when an input image or document page cannot be decoded.

    The detection pipeline never starts on input that fails to decode.
    """

    pass


class EncodeError(TextSegError):
    """
    Raised when a raster cannot be serialized back to an encoded image.

    The whole detection result is discarded; no partial region list is returned.
    """

    pass


class UnsupportedFormatError(TextSegError):
    """
    Raised when an input format is not supported.

    Example:
        >>> textseg.detect_regions("notes.docx")
        UnsupportedFormatError: Cannot detect format for: notes.docx
    """

    pass


class RecognitionError(TextSegError):
    """Raised when the recognition engine fails on a region."""

    pass


class ConfigurationError(TextSegError, ValueError):
    """
    Raised for invalid configuration.

    Example:
        >>> DetectionConfig(min_scale=0)
        ConfigurationError: min_scale must be > 0, got 0
    """

    pass
