import pytest

from teachable_mobilenet.classifier import get_top_k_classes


def test_top_two():
    result = get_top_k_classes(["a", "b", "c"], [0.1, 0.7, 0.2], 2)
    assert result == [
        {"className": "b", "probability": pytest.approx(0.7)},
        {"className": "c", "probability": pytest.approx(0.2)},
    ]


def test_k_is_clamped_to_number_of_classes():
    result = get_top_k_classes(["a", "b", "c"], [0.1, 0.7, 0.2], 10)
    assert [r["className"] for r in result] == ["b", "c", "a"]


def test_default_k_is_three():
    result = get_top_k_classes(list("abcde"), [0.1, 0.2, 0.3, 0.4, 0.5])
    assert [r["className"] for r in result] == ["e", "d", "c"]


def test_ties_keep_class_order():
    result = get_top_k_classes(["a", "b", "c", "d"], [0.25, 0.5, 0.25, 0.0], 4)
    assert [r["className"] for r in result] == ["b", "a", "c", "d"]


def test_missing_label_gets_placeholder():
    result = get_top_k_classes(["a"], [0.1, 0.9], 2)
    assert [r["className"] for r in result] == ["Class_1", "a"]


def test_values_are_not_normalised():
    result = get_top_k_classes(["a", "b"], [3.0, -1.0], 2)
    assert result[0]["probability"] == 3.0
    assert result[1]["probability"] == -1.0
    assert all(isinstance(r["probability"], float) for r in result)


def test_zero_k_returns_nothing():
    assert get_top_k_classes(["a"], [1.0], 0) == []
