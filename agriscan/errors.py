class AgriScanError(Exception):
    """Base class for every error raised by the agriscan package."""


class TransportError(AgriScanError):
    """The call to the AI backend failed before a response was received."""


class ParseError(AgriScanError):
    """The AI backend answered, but the payload could not be decoded."""


class UnsupportedImageError(AgriScanError):
    """An uploaded file is not an image."""


class TransitionError(AgriScanError):
    """A screen-flow action was requested from a screen that does not allow it."""


class ValidationError(AgriScanError):
    """A form was submitted with missing fields."""
