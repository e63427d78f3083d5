# errors.py


class ConversionError(Exception):
    """Base error for a conversion job. At most one is reported per job."""


class DecodeFailure(ConversionError):
    """Raised when the input audio or MIDI bytes cannot be read."""


class EmptyInput(ConversionError):
    """Raised when the input holds no notes / no detectable pitch at all."""


class EmptyResult(ConversionError):
    """Raised when the export stage produced an empty model."""


class ConversionFailed(ConversionError):
    """Generic failure for anything unexpected inside a job."""
