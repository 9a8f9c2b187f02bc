from .classifier import CustomMobileNet, get_top_k_classes
from .config import DEFAULT_CONFIG, IMAGE_SIZE, MobileNetConfig
from .errors import (
    ConfigurationFault,
    InvalidInputError,
    ModelLoadError,
    TeachableMobileNetError,
)
from .metadata import Metadata, fill_metadata, process_metadata
from .model_loader import (
    ModelOptions,
    load,
    load_from_files,
    load_truncated_mobilenet,
    parse_model_options,
)
from .version import __version__

__all__ = [
    "CustomMobileNet",
    "get_top_k_classes",
    "MobileNetConfig",
    "DEFAULT_CONFIG",
    "IMAGE_SIZE",
    "TeachableMobileNetError",
    "InvalidInputError",
    "ModelLoadError",
    "ConfigurationFault",
    "Metadata",
    "fill_metadata",
    "process_metadata",
    "ModelOptions",
    "load",
    "load_from_files",
    "load_truncated_mobilenet",
    "parse_model_options",
    "__version__",
]
