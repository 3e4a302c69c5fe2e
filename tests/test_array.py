import numpy as np
import pytest

from cloudtree.core.array import Array, ElementType


def test_array_records_shape_and_major_size():
    array = Array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]], ElementType.FLOAT64)

    assert array.shape == (3, 2)
    assert array.ndim == 2
    assert array.size_major() == 3
    assert len(array) == 3
    assert array.element_type is ElementType.FLOAT64


def test_array_infers_element_type_from_data():
    assert Array(np.arange(4, dtype=np.int32)).element_type is ElementType.INT32
    assert Array([0.5, 1.5]).element_type is ElementType.FLOAT64


def test_element_requires_matching_type():
    array = Array([1.0, 2.0, 3.0], np.float64)

    assert array.element(1, ElementType.FLOAT64) == 2.0
    assert array.element(2, np.float64) == 3.0
    with pytest.raises(TypeError):
        array.element(0, np.float32)
    with pytest.raises(TypeError):
        array.element(0, ElementType.INT64)


@pytest.mark.parametrize("index", [3, 10, -1])
def test_element_rejects_out_of_range_rows(index):
    array = Array([1.0, 2.0, 3.0], np.float64)

    with pytest.raises(IndexError):
        array.element(index, np.float64)


def test_element_multi_dimensional_index():
    array = Array(np.arange(6), ElementType.UINT16, shape=(3, 2))

    assert array.element((2, 1), ElementType.UINT16) == 5
    with pytest.raises(IndexError):
        array.element(1, ElementType.UINT16)
    with pytest.raises(IndexError):
        array.element((1, 2), ElementType.UINT16)


def test_array_buffer_is_owned_and_read_only():
    source = np.array([1.0, 2.0, 3.0])
    array = Array(source, np.float64)

    source[0] = 99.0
    assert array.element(0, np.float64) == 1.0
    with pytest.raises(ValueError):
        array.data[0] = 5.0


def test_array_rejects_unsupported_types_and_scalars():
    with pytest.raises(TypeError):
        Array([True, False])
    with pytest.raises(TypeError):
        Array([1.0], np.complex128)
    with pytest.raises(ValueError):
        Array(3.0, np.float64)


def test_element_type_resolution():
    assert ElementType.from_dtype(np.float32) is ElementType.FLOAT32
    assert ElementType.from_dtype("int16") is ElementType.INT16
    assert ElementType.from_dtype(ElementType.UINT8) is ElementType.UINT8
    assert ElementType.FLOAT64.is_floating
    assert not ElementType.INT8.is_floating
    with pytest.raises(TypeError):
        ElementType.from_dtype("not-a-dtype")
