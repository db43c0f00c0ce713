class PhotoToCADError(Exception):
    """Base exception for photo-to-CAD pipeline errors."""
    pass


class InvalidBufferError(PhotoToCADError, ValueError):
    """Raised when a pixel buffer or canvas size violates the buffer contract."""
    pass


class UnsupportedConfigurationError(PhotoToCADError, ValueError):
    """Raised for an unknown edge method, output format or unit."""
    pass
