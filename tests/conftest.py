import numpy as np
import pytest


class StubModel:
    """Stands in for a Keras model: ignores its input, returns a fixed output"""

    def __init__(self, output):
        self.output_values = np.asarray([output], dtype=np.float32)
        self.output_shape = (None, len(output))
        self.seen_shapes = []

    def predict(self, x, verbose=0):
        self.seen_shapes.append(x.shape)
        return self.output_values


@pytest.fixture
def stub_model():
    return StubModel([0.1, 0.7, 0.2])


@pytest.fixture
def metadata_doc():
    return {
        "tfjsVersion": "1.3.1",
        "tmVersion": "2.4.0",
        "tmSupportVersion": "0.8.4",
        "modelName": "tm-my-image-model",
        "timeStamp": "2020-01-01T00:00:00.000Z",
        "labels": ["a", "b", "c"],
        "userMetadata": {},
    }
