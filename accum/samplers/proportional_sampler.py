import random
from logging import getLogger

import numpy as np

from accum.trees.fenwick_tree import CheckedFenwickTree

logger = getLogger(__name__)


class ProportionalSampler:
    """Draws slot indices with probability proportional to their weights.

    Weights live in a non-negative CheckedFenwickTree, so updating a weight
    and locating a draw are both O(log n) and a negative weight raises
    NegativeElementViolation.
    """

    def __init__(self, capacity, dtype=np.float64):
        self.capacity = capacity
        self.tree = CheckedFenwickTree(capacity, dtype=dtype, non_negative=True)
        self.steps = 0

    @classmethod
    def from_weights(cls, weights, dtype=None):
        sampler = cls.__new__(cls)
        sampler.tree = CheckedFenwickTree.from_array(weights, dtype=dtype, non_negative=True)
        sampler.capacity = len(sampler.tree)
        sampler.steps = 0
        return sampler

    def update(self, idx, weight):
        self.tree.set(idx, weight)

    def weight(self, idx):
        return self.tree.get(idx)

    def total(self):
        return self.tree.total()

    def probability(self, idx):
        total = self.total()
        if total == 0:
            return 0.
        return float(self.tree.get(idx) / total)

    def _locate(self, s):
        idx = self.tree.min_rank_query(s)
        if idx is not None:
            return idx

        # float rounding can leave s just above the descent's running sum
        for idx in range(self.capacity - 1, -1, -1):
            if self.tree.elements[idx] > 0:
                return idx
        raise AssertionError('no positive weight although total is positive')

    def sample(self, batch_size):
        """Stratified draw: one index from each of ``batch_size`` equal
        segments of the total weight. Returns ``(indices, probabilities)``.
        """
        if batch_size < 1:
            raise ValueError(f'batch_size must be positive, got {batch_size}')

        total = self.total()
        if not total > 0:
            raise ValueError('cannot sample while every weight is zero')

        self.steps += 1
        segment = total / batch_size

        idx_batch = []
        probs = []
        for i in range(batch_size):
            a, b = segment * i, min(segment * (i + 1), total)
            # in (a, b], a draw of exactly zero would select a zero weight slot
            s = b - random.random() * (b - a)
            idx = self._locate(s)

            idx_batch.append(idx)
            probs.append(self.tree.get(idx) / total)

        logger.debug(f'sample #{self.steps}: {batch_size} indices from total weight {total}')
        return np.array(idx_batch, dtype=np.int64), np.array(probs, dtype=np.float64)

    def __len__(self):
        return self.capacity
