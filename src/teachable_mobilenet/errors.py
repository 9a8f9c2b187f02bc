class TeachableMobileNetError(Exception):
    """Base class for everything this package raises on purpose"""


class InvalidInputError(TeachableMobileNetError, ValueError):
    """Metadata, image or file input that cannot be used"""


class ModelLoadError(TeachableMobileNetError, RuntimeError):
    """A graph or metadata document could not be fetched or parsed"""


class ConfigurationFault(TeachableMobileNetError, RuntimeError):
    """A loaded graph does not look like the architecture we expect"""
