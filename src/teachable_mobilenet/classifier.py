from typing import Any, Dict, List, Sequence

import numpy as np

from .config import DEFAULT_CONFIG, IMAGE_SIZE
from .errors import ConfigurationFault
from .image_utils import capture, crop_to
from .metadata import Metadata, fill_metadata, placeholder_metadata


def get_top_k_classes(labels: Sequence[str], values, top_k: int = 3) -> List[Dict[str, Any]]:
    """
    Sort the model output and return the `top_k` best classes with their
    probabilities. Values are used as they are, no softmax is applied.

    Equal values keep their class order. A class index without a label
    gets the placeholder name Class_<index>.
    """
    values = np.asarray(values, dtype=np.float32).reshape(-1)
    top_k = max(0, min(top_k, len(values)))

    # stable sort keeps the lower index first on ties
    order = np.argsort(-values, kind="stable")[:top_k]

    top_classes_and_probs = []
    for idx in order:
        idx = int(idx)
        top_classes_and_probs.append({
            "className": labels[idx] if idx < len(labels) else f"Class_{idx}",
            "probability": float(values[idx]),
        })
    return top_classes_and_probs


class CustomMobileNet:
    """A trained image classifier bound to the metadata it was exported with"""

    EXPECTED_IMAGE_SIZE = IMAGE_SIZE

    def __init__(self, model, metadata=None, config=DEFAULT_CONFIG):
        self.model = model
        self.config = config
        if metadata is None:
            self._metadata = placeholder_metadata(self.get_total_classes())
        else:
            self._metadata = fill_metadata(metadata)

    def get_metadata(self) -> Metadata:
        return self._metadata

    @property
    def labels(self):
        return self._metadata.labels

    def get_total_classes(self) -> int:
        """Number of classes, read from the model's (batch, classes) output"""
        output_shape = tuple(self.model.output_shape)
        if len(output_shape) != 2:
            raise ConfigurationFault(
                f"Expected a (batch, classes) output, got shape {output_shape}"
            )
        return int(output_shape[1])

    def predict(self, image, flipped=False, max_predictions=10):
        """
        Classify one image and return up to `max_predictions` classes,
        best first, as [{"className": ..., "probability": ...}].
        """
        cropped_image = crop_to(image, self.config.image_size, flipped)
        batch = capture(cropped_image)

        # predict() hands back numpy arrays, no backend tensor outlives this call
        logits = self.model.predict(batch, verbose=0)
        return get_top_k_classes(self._metadata.labels, logits[0], max_predictions)
