"""
Named failure kinds for fingerprint extraction, encoding and comparison.

Every error carries a machine-readable ``code`` and a ``user_message``
suitable for showing in a UI. Input validation errors also derive from
ValueError so callers that only catch ValueError keep working.
"""


class FingerprintError(Exception):
    """Base class for all errors raised by this package."""

    code = "FINGERPRINT_ERROR"
    default_user_message = "Failed to process image"

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or self.default_user_message


class InvalidSizeError(FingerprintError, ValueError):
    """Fingerprint size parameter outside the supported range."""

    code = "INVALID_SIZE"
    default_user_message = "Invalid fingerprint size"


class FingerprintLengthError(FingerprintError, ValueError):
    """Two fingerprints of different lengths were compared."""

    code = "LENGTH_MISMATCH"
    default_user_message = "Fingerprints are not comparable"


class FingerprintKindError(FingerprintError, ValueError):
    """A dHash fingerprint was compared with an HSV-mean fingerprint."""

    code = "KIND_MISMATCH"
    default_user_message = "Fingerprints were made by different methods"


class ImageNotReadyError(FingerprintError):
    """The source image is missing, empty or could not be decoded."""

    code = "IMAGE_NOT_READY"
    default_user_message = "Image not loaded or invalid"


class RenderingSurfaceError(FingerprintError):
    """The resampling / encoding backend could not be used."""

    code = "RENDERING_SURFACE"
    default_user_message = "Cannot acquire drawing surface"


class CodecError(FingerprintError, ValueError):
    """An encoded fingerprint string is malformed."""

    code = "CODEC_ERROR"
    default_user_message = "Stored fingerprint is corrupted"
