import math
from logging import DEBUG, getLogger

import hydra
import numpy as np

from accum.trees.fenwick_tree import CheckedFenwickTree
from accum.utils.utils import set_seed

logger = getLogger(__name__)
logger.setLevel(DEBUG)


@hydra.main(config_path='config', config_name='frequency_rank_config')
def main(cfg):
    set_seed(cfg.seed)

    # frequency table of roughly normal events bucketed into n_buckets
    events = np.random.normal(cfg.n_buckets / 2, cfg.n_buckets / 8, size=cfg.n_events)
    buckets = np.clip(events.astype(np.int64), 0, cfg.n_buckets - 1)

    freq = CheckedFenwickTree(cfg.n_buckets, dtype=cfg.dtype)
    for b in buckets:
        freq.add(int(b), 1)

    total = freq.total()
    logger.info(f'events: {total} buckets: {len(freq)}')

    for q in cfg.quantiles:
        target = max(1, math.ceil(q * total))
        bucket = freq.min_rank_query(target)
        logger.info(f'quantile {q:.2f}: bucket {bucket} '
                    f'(cumulative {freq.prefix_sum(bucket)} of {total})')

    lo, hi = cfg.n_buckets // 4, 3 * cfg.n_buckets // 4
    logger.info(f'events in buckets [{lo}, {hi}]: {freq.range_sum(lo, hi)}')

    print('Complete')


if __name__ == '__main__':
    main()
