import re

import pytest
import requests

from teachable_mobilenet import metadata as metadata_module
from teachable_mobilenet.errors import InvalidInputError, ModelLoadError
from teachable_mobilenet.metadata import (
    Metadata,
    fill_metadata,
    is_metadata,
    placeholder_metadata,
    process_metadata,
)
from teachable_mobilenet.version import __version__


class FakeResponse:
    def __init__(self, payload, status_error=None):
        self.payload = payload
        self.status_error = status_error

    def raise_for_status(self):
        if self.status_error:
            raise self.status_error

    def json(self):
        return self.payload


def test_fill_sets_defaults():
    meta = fill_metadata({"tfjsVersion": "1.3.1"})
    assert meta.tfjs_version == "1.3.1"
    assert meta.tm_support_version == __version__
    assert meta.model_name == "untitled"
    assert meta.labels == ()
    assert meta.user_metadata == {}
    assert meta.tm_version is None
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", meta.time_stamp)


def test_fill_keeps_present_fields(metadata_doc):
    meta = fill_metadata(metadata_doc)
    assert meta.to_dict() == metadata_doc
    assert fill_metadata(meta) == meta


def test_fill_does_not_mutate_input():
    doc = {"tfjsVersion": "1.3.1"}
    fill_metadata(doc)
    assert doc == {"tfjsVersion": "1.3.1"}


def test_fill_requires_tfjs_version():
    with pytest.raises(InvalidInputError, match="tfjsVersion"):
        fill_metadata({"labels": ["a"]})


def test_is_metadata(metadata_doc):
    assert is_metadata(metadata_doc)
    assert not is_metadata({"tmSupportVersion": "0.8.4", "labels": []})
    assert not is_metadata({"tmVersion": "2", "tmSupportVersion": "0.8.4", "labels": "a,b"})
    assert not is_metadata(None)


def test_process_metadata_value(metadata_doc):
    meta = process_metadata(metadata_doc)
    assert isinstance(meta, Metadata)
    assert meta.labels == ("a", "b", "c")


def test_process_metadata_dataclass(metadata_doc):
    meta = fill_metadata(metadata_doc)
    assert process_metadata(meta) == meta


@pytest.mark.parametrize("bad", [{"labels": ["a"]}, ["a", "b"], 42])
def test_process_metadata_rejects_bad_shapes(bad):
    with pytest.raises(InvalidInputError):
        process_metadata(bad)


@pytest.mark.parametrize("location", ["metadata.json", "ftp://host/metadata.json", "/tmp/metadata.json"])
def test_string_without_http_scheme_is_rejected_before_fetch(monkeypatch, location):
    def fail(*args, **kwargs):
        raise AssertionError("should not fetch")

    monkeypatch.setattr(metadata_module.requests, "get", fail)
    with pytest.raises(InvalidInputError, match="not a valid url"):
        process_metadata(location)


def test_process_metadata_fetches_url(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse({"tfjsVersion": "1.3.1", "labels": ["cat", "dog"]})

    monkeypatch.setattr(metadata_module.requests, "get", fake_get)
    meta = process_metadata("https://example.com/model/metadata.json", timeout=5)

    assert calls == [("https://example.com/model/metadata.json", 5)]
    assert meta.labels == ("cat", "dog")
    assert meta.model_name == "untitled"


def test_fetch_failure_is_model_load_error(monkeypatch):
    def fake_get(url, timeout):
        return FakeResponse(None, status_error=requests.HTTPError("404 Client Error"))

    monkeypatch.setattr(metadata_module.requests, "get", fake_get)
    with pytest.raises(ModelLoadError) as excinfo:
        process_metadata("https://example.com/missing.json")
    assert isinstance(excinfo.value.__cause__, requests.HTTPError)


def test_placeholder_metadata():
    meta = placeholder_metadata(3)
    assert meta.labels == ("Class_0", "Class_1", "Class_2")
    assert isinstance(meta.tfjs_version, str)


@pytest.mark.parametrize("labels", [5, "a,b", ["a", 3]])
def test_fetched_document_with_bad_labels_is_invalid(monkeypatch, labels):
    monkeypatch.setattr(
        metadata_module.requests, "get",
        lambda url, timeout: FakeResponse({"tfjsVersion": "1.3.1", "labels": labels}),
    )
    with pytest.raises(InvalidInputError, match="labels"):
        process_metadata("https://h/metadata.json")


def test_fill_rejects_non_object_user_metadata():
    with pytest.raises(InvalidInputError, match="userMetadata"):
        fill_metadata({"tfjsVersion": "1.3.1", "userMetadata": ["x"]})


def test_exporter_keys_survive_round_trip(metadata_doc):
    doc = dict(metadata_doc, packageName="@teachablemachine/image", packageVersion="0.8.4", imageSize=224)
    meta = fill_metadata(doc)
    assert meta.extra == {"packageName": "@teachablemachine/image", "packageVersion": "0.8.4", "imageSize": 224}
    assert meta.to_dict() == doc


def test_metadata_is_hashable(metadata_doc):
    meta = fill_metadata(dict(metadata_doc, userMetadata={"owner": "me"}))
    assert hash(meta) == hash(fill_metadata(meta))
