from logging import DEBUG, getLogger

import hydra
import numpy as np

from accum.samplers.proportional_sampler import ProportionalSampler
from accum.utils.utils import set_seed

logger = getLogger(__name__)
logger.setLevel(DEBUG)


@hydra.main(config_path='config', config_name='weighted_sampling_config')
def main(cfg):
    set_seed(cfg.seed)

    weights = [(i % cfg.weight_period) ** cfg.weight_power
               for i in range(cfg.capacity)]
    sampler = ProportionalSampler(cfg.capacity, dtype=cfg.dtype)
    for i, w in enumerate(weights):
        sampler.update(i, w)

    logger.info(f'capacity: {cfg.capacity} total weight: {sampler.total()}')

    counts = np.zeros(cfg.capacity, dtype=np.int64)
    for _ in range(cfg.n_batches):
        idx_batch, _ = sampler.sample(cfg.batch_size)
        np.add.at(counts, idx_batch, 1)

    n_draws = cfg.n_batches * cfg.batch_size
    for i in range(cfg.capacity):
        logger.info(f'slot {i:3d} weight: {weights[i]:5} '
                    f'expected: {sampler.probability(i):.4f} '
                    f'observed: {counts[i] / n_draws:.4f}')

    # double every other weight and check the totals follow
    for i in range(0, cfg.capacity, 2):
        sampler.update(i, sampler.weight(i) * 2)
    logger.info(f'total weight after doubling even slots: {sampler.total()}')

    print('Complete')


if __name__ == '__main__':
    main()
