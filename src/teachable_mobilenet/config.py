import os
from dataclasses import dataclass
from typing import Optional, Tuple

IMAGE_SIZE = 224
DEFAULT_TRAINING_LAYER = "out_relu"
DEFAULT_ALPHA = 1.0
VALID_ALPHAS = (0.35, 0.50, 0.75, 1.00)

BASE_URL_TEMPLATE = (
    "https://storage.googleapis.com/teachable-machine-models/"
    "mobilenet_v2_weights_tf_dim_ordering_tf_kernels_{alpha}_{size}_no_top/model.json"
)

DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass(frozen=True)
class MobileNetConfig:
    image_size: int = IMAGE_SIZE
    training_layer: str = DEFAULT_TRAINING_LAYER
    default_alpha: float = DEFAULT_ALPHA
    valid_alphas: Tuple[float, ...] = VALID_ALPHAS
    base_url_template: str = BASE_URL_TEMPLATE
    # None lets Keras pick ~/.keras
    cache_dir: Optional[str] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_env(cls):
        """Defaults, with TM_CACHE_DIR / TM_REQUEST_TIMEOUT overrides"""
        return cls(
            cache_dir=os.environ.get("TM_CACHE_DIR") or None,
            request_timeout=float(
                os.environ.get("TM_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)
            ),
        )


DEFAULT_CONFIG = MobileNetConfig()
