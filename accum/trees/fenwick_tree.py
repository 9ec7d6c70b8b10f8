import operator
from logging import getLogger

import numpy as np

from accum.trees import numeric

logger = getLogger(__name__)


def lsb(n):
    return n & -n


def msb(n):
    return 1 << (n.bit_length() - 1) if n > 0 else 0


class FenwickError(Exception):
    pass


class IndexOutOfRange(FenwickError, IndexError):
    pass


class InvalidRange(FenwickError, ValueError):
    pass


class NegativeElementViolation(FenwickError, ValueError):
    pass


class FenwickTree:
    """Prefix sums over a fixed number of elements with O(log n) updates.

    Element ``i`` (0-based) is addressed through 1-based position ``p = i + 1``
    and ``self.tree[p - 1]`` holds the sum of elements ``p - lsb(p)`` to
    ``p - 1``. ``top_step`` is the largest power of two not above ``size``
    and seeds the binary lifting in the rank queries.

    Indices and ranges are not validated here; out of range arguments give
    undefined results, and a delta an integer dtype cannot hold is rounded
    separately in every slot it touches. Use ``CheckedFenwickTree`` when
    arguments come from untrusted code.
    """

    def __init__(self, size, dtype=np.float64):
        if size < 0:
            raise ValueError(f'size must be non-negative, got {size}')
        # dtype of the zero buffer decides the element type
        self._adopt(np.zeros(size, dtype=numeric.resolve_dtype(dtype)))
        logger.debug(f'created empty {type(self).__name__} of size {size} ({self.dtype})')

    def _adopt(self, tree):
        self.tree = tree
        self.size = len(tree)
        self.top_step = msb(self.size)

    @classmethod
    def _wrap(cls, tree):
        fw = cls.__new__(cls)
        fw._adopt(tree)
        return fw

    @staticmethod
    def _build(tree):
        size = len(tree)
        for i in range(1, size + 1):
            j = i + lsb(i)
            if j <= size:
                tree[j - 1] += tree[i - 1]
        return tree

    @classmethod
    def from_array(cls, values, dtype=None, copy=True):
        """Builds a tree from unsummed values in O(n).

        With ``copy=False`` a contiguous numpy array of an accepted dtype is
        summed in place and owned by the tree afterwards; the caller must not
        use it again.
        """
        array = numeric.as_values(values, dtype=dtype, copy=copy)
        in_place = array is values
        fw = cls._wrap(cls._build(array))
        logger.debug(f'built {cls.__name__} of size {fw.size} ({fw.dtype})'
                     f'{" in place" if in_place else ""}')
        return fw

    @classmethod
    def from_iterable(cls, iterable, dtype=None):
        return cls.from_array(list(iterable), dtype=dtype, copy=False)

    @property
    def dtype(self):
        return self.tree.dtype

    def __len__(self):
        return self.size

    def __repr__(self):
        return f'{type(self).__name__}({self.to_array().tolist()!r}, dtype={self.dtype})'

    def __iter__(self):
        return FenwickIter(self)

    def iter(self):
        return FenwickIter(self)

    def into_iter(self):
        """Moves the buffer into a consuming iterator; this tree is left empty."""
        it = FenwickIntoIter(FenwickTree._wrap(self.tree))
        self._adopt(np.zeros(0, dtype=self.dtype))
        return it

    def __getitem__(self, idx):
        return self.get(idx)

    def __setitem__(self, idx, value):
        self.set(idx, value)

    def add(self, idx, delta):
        idx += 1
        while idx <= self.size:
            self.tree[idx - 1] += delta
            idx += lsb(idx)

    def sub(self, idx, delta):
        # unsigned dtypes can't negate delta, so this is not add(idx, -delta)
        idx += 1
        while idx <= self.size:
            self.tree[idx - 1] -= delta
            idx += lsb(idx)

    def set(self, idx, value):
        cur = self.get(idx)
        if cur <= value:
            self.add(idx, value - cur)
        else:
            self.sub(idx, cur - value)

    def get(self, idx):
        return self.range_sum(idx, idx)

    def prefix_sum(self, idx):
        """Sum of elements 0 to ``idx`` inclusive."""
        idx += 1
        s = numeric.zero(self.dtype)
        while idx > 0:
            s += self.tree[idx - 1]
            idx -= lsb(idx)
        return s

    def total(self):
        if self.size == 0:
            return numeric.zero(self.dtype)
        return self.prefix_sum(self.size - 1)

    def range_sum(self, start, end):
        """Sum of elements ``start`` to ``end`` inclusive.

        Both cursors walk down until they meet at the position shared by the
        two prefixes, so the slots below it are never read.
        """
        s = numeric.zero(self.dtype)
        i = start
        j = end + 1
        while i != j:
            if j > i:
                s += self.tree[j - 1]
                j -= lsb(j)
            else:
                s -= self.tree[i - 1]
                i -= lsb(i)
        return s

    def rank_query(self, value):
        """First index whose prefix sum reaches ``value``, or None.

        The descent skips a slot only when it is strictly less than what is
        left of ``value``, so the result is the number of prefix sums below
        ``value``: over prefix sums ``1, 2, 5, 6, 7, 7`` both
        ``rank_query(3)`` and ``rank_query(5)`` are 2 and ``rank_query(7)``
        is 4. None when ``value`` is below the first element; a value above
        the total gives the last index. Requires every element to be
        non-negative.
        """
        if self.size == 0:
            return None

        step = self.top_step
        pos = 0
        remaining = value
        while step > 0:
            if pos + step <= self.size and self.tree[pos + step - 1] < remaining:
                remaining -= self.tree[pos + step - 1]
                pos += step
            step >>= 1

        if pos == self.size:
            return pos - 1
        if pos != 0 or self.tree[0] <= value:
            return pos
        return None

    def min_rank_query(self, value):
        """Smallest index with ``prefix_sum(index) >= value``, or None when
        the total is below ``value``. Requires every element to be
        non-negative.
        """
        step = self.top_step
        pos = 0
        s = numeric.zero(self.dtype)
        while step > 0:
            nxt = pos + step
            if nxt <= self.size and s + self.tree[nxt - 1] < value:
                s += self.tree[nxt - 1]
                pos = nxt
            step >>= 1

        if pos < self.size:
            return pos
        return None

    def to_array(self):
        """Element values (not prefix sums), recovered in O(n)."""
        values = self.tree.copy()
        for i in range(self.size, 0, -1):
            j = i + lsb(i)
            if j <= self.size:
                values[j - 1] -= values[i - 1]
        return values


class CheckedFenwickTree(FenwickTree):
    """FenwickTree validating every argument.

    Raises IndexOutOfRange for bad indices, InvalidRange for bad ranges and
    NegativeElementViolation for rank queries while an element is negative.
    With ``non_negative=True`` an update or build that would make an element
    negative is refused instead, before the tree is touched.

    ``elements`` shadows the element values as the caller wrote them, so the
    count of negative elements never depends on the rounding of ``get`` and
    the rank query check is O(1). Integer trees refuse deltas and values the
    dtype would truncate or wrap.
    """

    def __init__(self, size, dtype=np.float64, non_negative=False):
        self.non_negative = non_negative
        super().__init__(size, dtype=dtype)

    def _adopt(self, tree):
        super()._adopt(tree)
        self._reset(self.to_array())

    def _reset(self, elements):
        self.elements = elements
        if numeric.can_be_negative(elements.dtype):
            self.negatives = int((elements < 0).sum())
        else:
            self.negatives = 0

    @classmethod
    def from_array(cls, values, dtype=None, copy=True, non_negative=False):
        array = numeric.as_values(values, dtype=dtype, copy=copy)
        elements = array.copy()
        if non_negative and numeric.can_be_negative(elements.dtype) and (elements < 0).any():
            raise NegativeElementViolation('elements must be non-negative')
        fw = super().from_array(array, copy=False)
        fw.non_negative = non_negative
        fw._reset(elements)
        return fw

    def _check_index(self, idx):
        try:
            idx = operator.index(idx)
        except TypeError:
            raise IndexOutOfRange(f'index must be an integer, got {idx!r}') from None
        if not 0 <= idx < self.size:
            raise IndexOutOfRange(f'index {idx} out of range for size {self.size}')
        return idx

    def _check_non_negative(self):
        if self.negatives > 0:
            raise NegativeElementViolation(
                f'rank queries need non-negative elements, {self.negatives} element(s) are negative')

    def _check_element(self, idx, value):
        if self.non_negative and value < 0:
            raise NegativeElementViolation(f'element {idx} would become negative ({value})')

    def _store(self, idx, value):
        self.negatives += int(value < 0) - int(self.elements[idx] < 0)
        self.elements[idx] = value

    def add(self, idx, delta):
        idx = self._check_index(idx)
        delta = numeric.cast(self.dtype, delta)
        value = self.elements[idx] + delta
        self._check_element(idx, value)
        super().add(idx, delta)
        self._store(idx, value)

    def sub(self, idx, delta):
        idx = self._check_index(idx)
        delta = numeric.cast(self.dtype, delta)
        if not numeric.can_be_negative(self.dtype) and delta > self.elements[idx]:
            raise NegativeElementViolation(
                f'element {idx} of an unsigned tree would go below zero')
        value = self.elements[idx] - delta
        self._check_element(idx, value)
        super().sub(idx, delta)
        self._store(idx, value)

    def set(self, idx, value):
        idx = self._check_index(idx)
        value = numeric.cast(self.dtype, value)
        self._check_element(idx, value)
        cur = super().get(idx)
        if cur <= value:
            super().add(idx, value - cur)
        else:
            super().sub(idx, cur - value)
        self._store(idx, value)

    def get(self, idx):
        return super().get(self._check_index(idx))

    def prefix_sum(self, idx):
        return super().prefix_sum(self._check_index(idx))

    def range_sum(self, start, end):
        try:
            start, end = operator.index(start), operator.index(end)
        except TypeError:
            raise InvalidRange(f'range bounds must be integers, got {start!r}, {end!r}') from None
        if not 0 <= start <= end < self.size:
            raise InvalidRange(f'invalid range [{start}, {end}] for size {self.size}')
        return super().range_sum(start, end)

    def rank_query(self, value):
        self._check_non_negative()
        return super().rank_query(value)

    def min_rank_query(self, value):
        self._check_non_negative()
        return super().min_rank_query(value)


class FenwickIter:
    """Prefix sums of a live tree, one per element."""

    def __init__(self, fw):
        self.fw = fw
        self.idx = 0

    def __iter__(self):
        return self

    def __next__(self):
        if self.idx >= len(self.fw):
            raise StopIteration
        self.idx += 1
        return self.fw.prefix_sum(self.idx - 1)

    def __length_hint__(self):
        return max(len(self.fw) - self.idx, 0)


class FenwickIntoIter(FenwickIter):
    """Prefix sums of a tree this iterator owns; the buffer is dropped once
    the last one has been produced.
    """

    def __next__(self):
        if self.fw is None:
            raise StopIteration
        try:
            return super().__next__()
        except StopIteration:
            self.fw = None
            raise

    def __length_hint__(self):
        if self.fw is None:
            return 0
        return super().__length_hint__()
