from typing import Protocol, runtime_checkable

import numpy as np

# i: signed int, u: unsigned int, f: float, O: python objects (int, Fraction, Decimal)
ACCEPTED_KINDS = ('i', 'u', 'f', 'O')


@runtime_checkable
class Numeric(Protocol):
    """Capabilities an element needs to live in a tree.

    Addition and subtraction (in-place forms fall back to these), a total
    order and a zero obtained from ``0``. Values are copied by value, so
    mutable elements are not supported.
    """

    def __add__(self, other): ...

    def __sub__(self, other): ...

    def __lt__(self, other): ...

    def __le__(self, other): ...


def resolve_dtype(dtype):
    dtype = np.dtype(dtype)
    if dtype.kind not in ACCEPTED_KINDS:
        raise TypeError(
            f'dtype {dtype} is not an ordered numeric type '
            f'(accepted kinds: {", ".join(ACCEPTED_KINDS)})')
    return dtype


def is_numeric(value):
    if isinstance(value, (bool, np.bool_, complex, np.complexfloating)):
        return False
    return isinstance(value, Numeric)


def as_values(values, dtype=None, copy=True):
    """Turns ``values`` into a 1-D array of an accepted dtype.

    With ``copy=False`` a suitable numpy array is returned as is, so the
    caller hands its buffer over.
    """
    if not copy and isinstance(values, np.ndarray) \
            and (dtype is None or values.dtype == np.dtype(dtype)) \
            and values.flags.c_contiguous and values.flags.writeable:
        array = values
    elif dtype is None:
        array = np.array(values)
        if array.dtype.kind in ('U', 'S'):
            array = np.array(values, dtype=object)
    else:
        array = np.array(values, dtype=dtype)

    if array.ndim != 1:
        raise ValueError(f'expected a 1-D sequence of values, got shape {array.shape}')

    resolve_dtype(array.dtype)
    if array.dtype.kind == 'O':
        for value in array:
            if not is_numeric(value):
                raise TypeError(f'{value!r} ({type(value).__name__}) is not an ordered numeric value')
    return array


def zero(dtype):
    if dtype.kind == 'O':
        return 0
    return dtype.type(0)


def can_be_negative(dtype):
    return dtype.kind != 'u'


def cast(dtype, value):
    """Converts ``value`` to the scalar type of ``dtype``.

    Integer dtypes refuse values they would truncate or wrap, since every
    slot an update touches would round on its own.
    """
    if dtype.kind == 'O':
        return value
    if dtype.kind in ('i', 'u'):
        try:
            converted = dtype.type(value)
        except (OverflowError, ValueError, TypeError):
            raise TypeError(f'{value!r} does not fit in {dtype}') from None
        if converted != value:
            raise TypeError(f'{value!r} is not exactly representable in {dtype}')
        return converted
    return dtype.type(value)
