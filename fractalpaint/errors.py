class FractalPaintError(Exception):
    """Base class for errors raised by fractalpaint."""


class InvalidConfiguration(FractalPaintError, ValueError):
    """A palette, scheduler or config value was rejected at construction."""


class IOFailure(FractalPaintError, RuntimeError):
    """Reading a config file or writing an image failed. Not retried."""
