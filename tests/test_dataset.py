import numpy as np
import pytest

from cloudtree import Array, Dataset, ElementType, InvariantError


def _xyz() -> Dataset:
    return Dataset(
        {
            "x": Array([1, 1, 1], np.float64),
            "y": Array([2, 1, 3], np.float64),
            "z": Array([1, 4, 1], np.float64),
        }
    )


def test_dataset_size_major_and_selection():
    dataset = _xyz()

    assert dataset.size_major() == 3
    selection = dataset.selection(["x", "y", "z"])
    assert len(selection) == 3
    assert selection.size_major() == 3
    assert selection[0].element(0, ElementType.FLOAT64) == 1.0
    assert selection.names == ("x", "y", "z")


def test_selection_preserves_requested_order_and_shares_arrays():
    dataset = _xyz()

    selection = dataset.selection(["z", "x"])

    assert selection.names == ("z", "x")
    assert selection[0] is dataset["z"]
    assert selection[1] is dataset["x"]
    np.testing.assert_array_equal(selection.to_numpy(), [[1.0, 1.0], [4.0, 1.0], [1.0, 1.0]])


def test_add_rejects_mismatched_major_size():
    dataset = _xyz()

    with pytest.raises(InvariantError):
        dataset.add("w", Array([1.0, 2.0], np.float64))
    assert "w" not in dataset
    assert issubclass(InvariantError, ValueError)


def test_replacing_the_only_array_resizes_dataset():
    dataset = Dataset({"x": Array(np.zeros(3), np.float64)})

    dataset.add("x", Array(np.zeros(7), np.float64))

    assert dataset.size_major() == 7
    assert dataset["x"].size_major() == 7
    dataset.add("y", Array(np.ones(7), np.float64))
    with pytest.raises(InvariantError):
        dataset.add("x", Array(np.zeros(2), np.float64))
    assert dataset["x"].size_major() == 7


def test_empty_dataset_takes_size_from_first_array():
    dataset = Dataset()
    assert dataset.size_major() == 0

    dataset.add("a", Array(np.zeros(5), np.float64))
    assert dataset.size_major() == 5

    dataset.add("b", Array(np.zeros((5, 3)), np.float32))
    assert dataset.size_major() == 5

    dataset.remove("a")
    dataset.remove("b")
    assert dataset.size_major() == 0
    dataset.add("c", Array(np.zeros(2), np.float64))
    assert dataset.size_major() == 2


def test_unknown_names():
    dataset = _xyz()

    assert dataset.get("w") is None
    with pytest.raises(KeyError):
        dataset["w"]
    with pytest.raises(KeyError):
        dataset.selection(["x", "w"])
    with pytest.raises(KeyError):
        dataset.remove("w")


def test_add_requires_array_instances():
    with pytest.raises(TypeError):
        Dataset().add("x", [1.0, 2.0])


def test_selection_element_type_reports_mixed_columns():
    dataset = Dataset(
        {
            "x": Array([1.0, 2.0], np.float64),
            "i": Array([1, 2], np.int32),
        }
    )

    assert dataset.selection(["x"]).element_type is ElementType.FLOAT64
    assert dataset.selection(["x", "i"]).element_type is None


def test_selection_to_numpy_requires_one_dimensional_columns():
    dataset = Dataset({"m": Array(np.zeros((2, 2)), np.float64)})

    with pytest.raises(ValueError):
        dataset.selection(["m"]).to_numpy()


def test_from_columns_and_mapping_protocol():
    dataset = Dataset.from_columns({"a": [1.0, 2.0], "b": [3.0, 4.0]}, np.float32)

    assert dataset.names() == ("a", "b")
    assert list(dataset) == ["a", "b"]
    assert len(dataset) == 2
    assert dataset.has_columns(["b", "a"])
    assert not dataset.has_columns(["a", "c"])
    assert dataset["a"].element_type is ElementType.FLOAT32
