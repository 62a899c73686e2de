"""Exceptions raised by image2relief."""


class ReliefError(Exception):
    """Base class for all image2relief errors."""


class ConfigurationError(ReliefError, ValueError):
    """Raised when relief settings or preprocessing options are invalid."""


class ImageDecodeError(ReliefError, IOError):
    """Raised when an input file cannot be decoded as an image."""


class MeshWriteError(ReliefError, IOError):
    """Raised when a mesh cannot be written to disk."""
