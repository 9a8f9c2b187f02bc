import hashlib
import json
import logging
import os
import posixpath
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin, urlparse

import tensorflow as tf

from .classifier import CustomMobileNet
from .config import DEFAULT_CONFIG, MobileNetConfig
from .errors import ConfigurationFault, InvalidInputError, ModelLoadError
from .metadata import is_url, process_metadata

logger = logging.getLogger(__name__)


@dataclass
class ModelOptions:
    checkpoint_url: Optional[str] = None
    alpha: Optional[float] = None


def parse_model_options(options: Optional[ModelOptions] = None,
                        config: MobileNetConfig = DEFAULT_CONFIG) -> str:
    """Work out which base model to download from the user's options"""
    options = options or ModelOptions()

    if options.checkpoint_url:
        if options.alpha:
            logger.warning("Checkpoint URL passed to model options, alpha options are ignored")
        return options.checkpoint_url

    alpha = options.alpha or config.default_alpha
    if not any(abs(alpha - valid) < 1e-9 for valid in config.valid_alphas):
        logger.warning(
            "Invalid alpha %s. Options are: %s. Will load default of %.2f",
            alpha,
            ", ".join(f"{a:.2f}" for a in config.valid_alphas),
            config.default_alpha,
        )
        alpha = config.default_alpha
    else:
        logger.info("Loading model with alpha: %.2f", alpha)

    return config.base_url_template.format(alpha=f"{alpha:.2f}", size=config.image_size)


def _weight_paths(model_json_path):
    """Shard file names listed in a TF.js model.json"""
    with open(model_json_path, "r", encoding="utf-8") as f:
        topology = json.load(f)
    manifest = topology.get("weightsManifest")
    if not isinstance(manifest, list):
        raise InvalidInputError(f"{model_json_path} has no weightsManifest")
    return [p for group in manifest for p in group.get("paths", [])]


def _download(url, config):
    """Fetch a remote graph (and its weight shards) into the Keras cache"""
    parsed = urlparse(url)
    fname = posixpath.basename(parsed.path) or "model.json"
    base_url = url.rsplit("/", 1)[0] + "/"
    # one cache folder per remote directory, shards land next to model.json
    cache_subdir = os.path.join(
        "teachable_mobilenet", hashlib.sha1(base_url.encode("utf-8")).hexdigest()[:16]
    )

    logger.info("Fetching %s", url)
    local_path = tf.keras.utils.get_file(
        fname, origin=url, cache_dir=config.cache_dir, cache_subdir=cache_subdir
    )
    if fname.endswith(".json"):
        for shard in _weight_paths(local_path):
            tf.keras.utils.get_file(
                shard,
                origin=urljoin(base_url, shard),
                cache_dir=config.cache_dir,
                cache_subdir=cache_subdir,
            )
    return local_path


def load_layers_model(location, config: MobileNetConfig = DEFAULT_CONFIG):
    """
    Materialise a Keras model from a URL, a TF.js model.json or any file
    tf.keras.models.load_model understands (.keras, .h5, SavedModel).
    """
    location = str(location)
    try:
        path = _download(location, config) if is_url(location) else location

        if path.endswith(".json"):
            from tensorflowjs.converters import load_keras_model

            return load_keras_model(path)
        return tf.keras.models.load_model(path)
    except InvalidInputError:
        raise
    except Exception as e:
        raise ModelLoadError(f"Error loading model from {location}: {e}") from e


def _keras_for(model):
    """The Keras package a loaded model belongs to (tf.keras or tf_keras)"""
    if type(model).__module__.split(".", 1)[0] == "tf_keras":
        import tf_keras

        return tf_keras
    return tf.keras


def load_truncated_mobilenet(options: Optional[ModelOptions] = None,
                             config: MobileNetConfig = DEFAULT_CONFIG,
                             load_fn=load_layers_model):
    """
    Load the base MobileNetV2, cut it at the training layer and pool the
    result into a flat feature vector.
    """
    checkpoint_url = parse_model_options(options, config)
    mobilenet = load_fn(checkpoint_url, config)

    try:
        layer = mobilenet.get_layer(config.training_layer)
    except ValueError as e:
        raise ConfigurationFault(
            f"Layer '{config.training_layer}' not found in {checkpoint_url}"
        ) from e

    # TF.js graphs come back as legacy tf_keras models, which Keras 3 cannot compose
    keras = _keras_for(mobilenet)
    try:
        truncated_model = keras.Model(inputs=mobilenet.inputs, outputs=layer.output)
    except (TypeError, ValueError) as e:
        raise ConfigurationFault(
            f"Could not cut {checkpoint_url} at '{config.training_layer}': {e}"
        ) from e

    # Global Average Pooling 2D goes from [7, 7, 1280] to [1280]
    model = keras.Sequential()
    model.add(truncated_model)
    model.add(keras.layers.GlobalAveragePooling2D())
    return model


def load(checkpoint, metadata=None, config: MobileNetConfig = DEFAULT_CONFIG,
         load_fn=load_layers_model):
    """Load a trained classifier and bind it to its metadata"""
    custom_model = load_fn(checkpoint, config)
    metadata_json = process_metadata(metadata, config.request_timeout) if metadata else None
    return CustomMobileNet(custom_model, metadata_json, config)


def _read_bytes(file):
    if isinstance(file, (bytes, bytearray)):
        return bytes(file)
    if isinstance(file, (str, Path)):
        return Path(file).read_bytes()
    data = file.read()
    if isinstance(data, str):
        data = data.encode("utf-8")
    return data


def load_from_files(model_json, weights, metadata=None,
                    config: MobileNetConfig = DEFAULT_CONFIG,
                    load_fn=load_layers_model):
    """
    Same as load() but from a local model.json + weights.bin pair, given
    as paths, raw bytes or open binary files (e.g. Streamlit uploads).
    """
    with tempfile.TemporaryDirectory() as tmp_dir:
        json_path = os.path.join(tmp_dir, "model.json")
        with open(json_path, "wb") as f:
            f.write(_read_bytes(model_json))

        shard_paths = _weight_paths(json_path)
        if len(shard_paths) != 1:
            raise InvalidInputError(
                f"Expected a single weights file in the manifest, found {len(shard_paths)}"
            )
        shard_path = os.path.normpath(os.path.join(tmp_dir, shard_paths[0]))
        if os.path.dirname(shard_path) != tmp_dir:
            raise InvalidInputError(f"Unsupported weights path: {shard_paths[0]}")
        with open(shard_path, "wb") as f:
            f.write(_read_bytes(weights))

        custom_model = load_fn(json_path, config)

    metadata_json = process_metadata(metadata, config.request_timeout) if metadata else None
    return CustomMobileNet(custom_model, metadata_json, config)


def get_model_info(model):
    """Get model information"""
    if model is None:
        return None

    input_shape = tuple(model.input_shape[1:3])  # (height, width)
    num_classes = model.output_shape[-1]

    return {
        "input_shape": input_shape,
        "num_classes": num_classes,
        "total_params": model.count_params(),
    }
