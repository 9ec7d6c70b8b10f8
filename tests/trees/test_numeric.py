from decimal import Decimal
from fractions import Fraction

import numpy as np
import pytest

from accum.trees import numeric
from accum.trees.fenwick_tree import FenwickTree


@pytest.mark.parametrize('dtype', [np.int8, np.int64, np.uint16, np.uint64,
                                   np.float32, np.float64, object, 'i4', int, float])
def test_accepted_dtypes(dtype):
    assert numeric.resolve_dtype(dtype) == np.dtype(dtype)
    fw = FenwickTree(4, dtype=dtype)
    fw.add(1, 3)
    assert fw.total() == 3


@pytest.mark.parametrize('dtype', [bool, np.complex128, str, 'S4', 'datetime64[s]'])
def test_rejected_dtypes(dtype):
    with pytest.raises(TypeError):
        numeric.resolve_dtype(dtype)
    with pytest.raises(TypeError):
        FenwickTree(4, dtype=dtype)


@pytest.mark.parametrize('values', [[True, False], [1 + 2j, 3j], ['a', 'b'], [1, 'a']])
def test_rejected_values(values):
    with pytest.raises(TypeError):
        FenwickTree.from_array(values)


def test_rejected_object_values():
    with pytest.raises(TypeError):
        FenwickTree.from_array([Fraction(1, 2), 'x'], dtype=object)
    with pytest.raises(TypeError):
        FenwickTree.from_array([1, None], dtype=object)


def test_values_must_be_one_dimensional():
    with pytest.raises(ValueError):
        FenwickTree.from_array([[1, 2], [3, 4]])


def test_is_numeric():
    for value in [1, 2.5, Fraction(1, 3), Decimal('1.5'), np.int32(4), np.float64(0.5)]:
        assert numeric.is_numeric(value)
    for value in ['a', None, True, 1j, [1], object()]:
        assert not numeric.is_numeric(value)


def test_inferred_dtype():
    assert FenwickTree.from_array([1, 2, 3]).dtype.kind == 'i'
    assert FenwickTree.from_array([1.0, 2, 3]).dtype == np.float64
    assert FenwickTree.from_array([Decimal('0.1'), Decimal('0.2')]).dtype == object


def test_decimal_sums_are_exact():
    fw = FenwickTree.from_array([Decimal('0.1')] * 10)
    assert fw.total() == Decimal('1.0')
    assert fw.range_sum(2, 4) == Decimal('0.3')


def test_zero():
    assert numeric.zero(np.dtype(np.uint8)) == 0
    assert numeric.zero(np.dtype(np.uint8)).dtype == np.uint8
    assert numeric.zero(np.dtype(object)) == 0


def test_can_be_negative():
    assert numeric.can_be_negative(np.dtype(np.int32))
    assert numeric.can_be_negative(np.dtype(np.float64))
    assert numeric.can_be_negative(np.dtype(object))
    assert not numeric.can_be_negative(np.dtype(np.uint32))


def test_cast():
    assert numeric.cast(np.dtype(np.int64), 3.0) == 3
    assert numeric.cast(np.dtype(np.int64), 3.0).dtype == np.int64
    assert numeric.cast(np.dtype(np.float32), 0.1) == np.float32(0.1)
    assert numeric.cast(np.dtype(object), Fraction(1, 3)) == Fraction(1, 3)
    for dtype, value in [(np.int64, 2.5), (np.uint32, -1), (np.int8, 1000), (np.int64, float('nan'))]:
        with pytest.raises(TypeError):
            numeric.cast(np.dtype(dtype), value)
