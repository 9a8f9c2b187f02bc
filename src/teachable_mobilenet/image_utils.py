import math
from pathlib import Path

import cv2
import numpy as np
from PIL import Image

from .errors import InvalidInputError


def to_rgb_array(image):
    """Convert a PIL image, path or numpy array to a uint8 HxWx3 RGB array"""
    if isinstance(image, (str, Path)):
        image = Image.open(image)

    if isinstance(image, Image.Image):
        # palette, CMYK, 16-bit etc. all go through PIL's own conversion
        if image.mode not in ("L", "RGB", "RGBA"):
            image = image.convert("RGB")
        img_array = np.array(image)
    elif isinstance(image, np.ndarray):
        img_array = image
    else:
        raise InvalidInputError(f"Unsupported image type: {type(image).__name__}")

    if img_array.dtype != np.uint8:
        img_array = np.clip(img_array, 0, 255).astype(np.uint8)

    # Handle different image formats
    if len(img_array.shape) == 2:
        img_array = cv2.cvtColor(img_array, cv2.COLOR_GRAY2RGB)
    elif len(img_array.shape) == 3:
        if img_array.shape[2] == 4:
            img_array = img_array[:, :, :3]
        elif img_array.shape[2] == 1:
            img_array = cv2.cvtColor(img_array, cv2.COLOR_GRAY2RGB)
        elif img_array.shape[2] != 3:
            raise InvalidInputError(f"Unsupported image format: {img_array.shape[2]} channels")
    else:
        raise InvalidInputError(f"Invalid image shape: {img_array.shape}")

    return np.ascontiguousarray(img_array)


def crop_to(image, size, flipped=False):
    """
    Scale the shortest side to `size`, keep the centre square and
    optionally mirror it horizontally (for selfie cameras).
    """
    img_array = to_rgb_array(image)
    height, width = img_array.shape[:2]

    scale = size / min(width, height)
    scaled_w = math.ceil(width * scale)
    scaled_h = math.ceil(height * scale)
    resized = cv2.resize(img_array, (scaled_w, scaled_h), interpolation=cv2.INTER_AREA)

    x = (scaled_w - size) // 2
    y = (scaled_h - size) // 2
    cropped = resized[y:y + size, x:x + size]

    if flipped:
        cropped = cv2.flip(cropped, 1)

    return np.ascontiguousarray(cropped)


def capture(image):
    """Turn a cropped RGB image into a (1, H, W, 3) float batch in [-1, 1]"""
    image = image.astype(np.float32) / 127.0 - 1.0
    return np.expand_dims(image, axis=0)
