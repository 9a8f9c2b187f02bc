from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import requests

from .config import DEFAULT_REQUEST_TIMEOUT
from .errors import InvalidInputError, ModelLoadError
from .version import __version__

DEFAULT_MODEL_NAME = "untitled"

# JSON key -> dataclass field
_FIELDS = {
    "tfjsVersion": "tfjs_version",
    "tmVersion": "tm_version",
    "tmSupportVersion": "tm_support_version",
    "modelName": "model_name",
    "timeStamp": "time_stamp",
    "labels": "labels",
    "userMetadata": "user_metadata",
}


@dataclass(frozen=True)
class Metadata:
    """
    Describes how a model was created: the labels of its classes (in
    output-index order) and the versions of the tools that trained it.

    Keys the exporter writes beyond the known ones (packageName,
    imageSize, ...) are kept in `extra` and written back by to_dict().
    """

    tfjs_version: str
    tm_support_version: str
    labels: Tuple[str, ...] = ()
    tm_version: Optional[str] = None
    model_name: str = DEFAULT_MODEL_NAME
    time_stamp: Optional[str] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict, hash=False)
    extra: Dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Metadata":
        """Build from a filled camelCase document. Use fill_metadata for partial ones."""
        kwargs = {attr: data[key] for key, attr in _FIELDS.items() if key in data}
        kwargs["labels"] = tuple(kwargs.get("labels") or ())
        kwargs["user_metadata"] = dict(kwargs.get("user_metadata") or {})
        kwargs["extra"] = {k: v for k, v in data.items() if k not in _FIELDS}
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        for key, attr in _FIELDS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            out[key] = list(value) if attr == "labels" else value
        return out


MetadataSource = Union[str, Metadata, Mapping[str, Any], None]


def _now_iso() -> str:
    # same shape as JavaScript's Date.toISOString()
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def is_metadata(value: Any) -> bool:
    """Shape check for an already parsed metadata document"""
    return (
        isinstance(value, Mapping)
        and isinstance(value.get("tmVersion"), str)
        and isinstance(value.get("tmSupportVersion"), str)
        and isinstance(value.get("labels"), (list, tuple))
    )


def fill_metadata(data: Union[Metadata, Mapping[str, Any]]) -> Metadata:
    """
    Fill in the optional fields of a metadata document.

    Fields that are already present are kept as they are, so filling a
    complete document returns the same values.
    """
    if isinstance(data, Metadata):
        data = data.to_dict()
    if not isinstance(data, Mapping):
        raise InvalidInputError(f"metadata must be a mapping, got {type(data).__name__}")
    if not isinstance(data.get("tfjsVersion"), str):
        raise InvalidInputError("metadata.tfjsVersion is invalid")

    filled = dict(data)
    filled["tmSupportVersion"] = filled.get("tmSupportVersion") or __version__
    filled["timeStamp"] = filled.get("timeStamp") or _now_iso()
    filled["userMetadata"] = filled.get("userMetadata") or {}
    filled["modelName"] = filled.get("modelName") or DEFAULT_MODEL_NAME
    filled["labels"] = filled.get("labels") or []
    if not isinstance(filled["labels"], (list, tuple)) or not all(
        isinstance(label, str) for label in filled["labels"]
    ):
        raise InvalidInputError("metadata.labels must be a list of strings")
    if not isinstance(filled["userMetadata"], Mapping):
        raise InvalidInputError("metadata.userMetadata must be an object")
    return Metadata.from_dict(filled)


def placeholder_metadata(total_classes: int) -> Metadata:
    """Metadata for a model loaded without one: Class_0 .. Class_{n-1}"""
    import tensorflow as tf

    return fill_metadata({
        "tfjsVersion": tf.__version__,
        "labels": [f"Class_{i}" for i in range(total_classes)],
    })


def is_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def fetch_metadata(url: str, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> Dict[str, Any]:
    """Download and parse a metadata.json"""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as e:
        raise ModelLoadError(f"Could not load metadata from {url}: {e}") from e


def process_metadata(source: MetadataSource, timeout: Optional[float] = None) -> Metadata:
    """
    Resolve metadata given as a URL, a Metadata value or a parsed document.
    """
    if isinstance(source, str):
        if not is_url(source):
            raise InvalidInputError("metadata is a string but not a valid url")
        document = fetch_metadata(source, timeout if timeout is not None else DEFAULT_REQUEST_TIMEOUT)
        return fill_metadata(document)

    if isinstance(source, Metadata):
        return fill_metadata(source)

    if is_metadata(source):
        return fill_metadata(source)

    raise InvalidInputError("Invalid Metadata provided")
