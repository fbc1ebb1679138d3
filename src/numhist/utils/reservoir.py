"""
Reservoir sampling primitives and the two-sample significance test.

A reservoir is a plain list holding a uniform random subset of every item ever
offered to it, capped at a fixed capacity. Callers track how many items were
offered (the stream length) and pass it with each operation. All randomness is
drawn from a ``numpy.random.Generator`` so results are reproducible when a
seeded generator is supplied, or when ``settings.random_seed`` is set.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, NamedTuple, Optional, TypeVar

import numpy as np
from scipy.stats import mannwhitneyu

from numhist.config import settings

__all__ = [
    "TwoSampleTestResult",
    "default_generator",
    "merge_sampled_streams",
    "seed_default_generator",
    "two_sample_test",
    "uniformly_sample_array",
    "uniformly_sample_stream",
]

T = TypeVar("T")

_default_generator: Optional[np.random.Generator] = None


class TwoSampleTestResult(NamedTuple):
    statistic: float
    p: float


def default_generator() -> np.random.Generator:
    """
    :return: The process wide generator, created from ``settings.random_seed``
        on first use.
    """
    global _default_generator  # noqa: PLW0603

    if _default_generator is None:
        _default_generator = np.random.default_rng(settings.random_seed)

    return _default_generator


def seed_default_generator(seed: Optional[int]) -> np.random.Generator:
    """
    Replace the process wide generator with one seeded by ``seed``.

    :param seed: Seed for the new generator, None for fresh OS entropy.
    :return: The new generator.
    """
    global _default_generator  # noqa: PLW0603

    _default_generator = np.random.default_rng(seed)

    return _default_generator


def uniformly_sample_stream(
    samples: list[T],
    stream_length: int,
    new_element: T,
    num_samples: int,
    rng: Optional[np.random.Generator] = None,
) -> bool:
    """
    Offer ``new_element`` to the reservoir ``samples`` in place.

    Until the stream is longer than the capacity every element is kept. After
    that each new element is kept with probability
    ``num_samples / stream_length`` and replaces a random existing element, so
    after any number of offers each element seen has the same chance of being
    in the reservoir.

    :param samples: The reservoir, modified in place.
    :param stream_length: Number of elements offered so far, including this one.
    :param new_element: The element being offered.
    :param num_samples: Capacity of the reservoir.
    :param rng: Generator to draw from, the default generator if None.
    :return: True if the element was stored.
    """
    if stream_length <= num_samples:
        if len(samples) >= stream_length:
            samples[stream_length - 1] = new_element
        else:
            samples.append(new_element)
        return True

    rng = rng or default_generator()

    if rng.random() >= num_samples / stream_length:
        return False

    if len(samples) < num_samples:
        # only reached for sparse streams where not every item was offered
        samples.append(new_element)
    else:
        samples[int(rng.integers(num_samples))] = new_element

    return True


def uniformly_sample_array(
    samples: list[T], count: int, rng: Optional[np.random.Generator] = None
) -> list[T]:
    """
    Shrink ``samples`` in place to at most ``count`` elements by discarding
    randomly chosen elements.

    :return: The same list, for chaining.
    """
    if len(samples) <= count:
        return samples

    rng = rng or default_generator()
    keep = sorted(rng.choice(len(samples), size=count, replace=False).tolist())
    samples[:] = [samples[index] for index in keep]

    return samples


def merge_sampled_streams(
    a_samples: Sequence[T],
    a_stream_length: int,
    b_samples: Sequence[T],
    b_stream_length: int,
    num_samples: int,
    rng: Optional[np.random.Generator] = None,
) -> list[T]:
    """
    Merge two reservoirs into a new one of capacity ``num_samples``.

    Each reservoir is a uniform sample of its own stream, so the number of
    elements the merged reservoir takes from each side follows the
    hypergeometric distribution over the two stream lengths. The chosen
    elements are then drawn uniformly from each side. When both streams fit
    within the capacity every element is kept.

    :param a_samples: Reservoir of the first stream.
    :param a_stream_length: Number of elements offered to the first stream.
    :param b_samples: Reservoir of the second stream.
    :param b_stream_length: Number of elements offered to the second stream.
    :param num_samples: Capacity of the merged reservoir.
    :param rng: Generator to draw from, the default generator if None.
    :return: The merged reservoir, a new list.
    """
    a_samples = list(a_samples)
    b_samples = list(b_samples)
    target = min(num_samples, len(a_samples) + len(b_samples))

    if target <= 0:
        return []

    if len(a_samples) + len(b_samples) <= num_samples and (
        len(a_samples) >= a_stream_length and len(b_samples) >= b_stream_length
    ):
        return a_samples + b_samples

    rng = rng or default_generator()
    a_weight = max(a_stream_length, len(a_samples))
    b_weight = max(b_stream_length, len(b_samples))

    if b_weight == 0:
        a_count = target
    elif a_weight == 0:
        a_count = 0
    else:
        a_count = int(rng.hypergeometric(a_weight, b_weight, target))

    # a reservoir may hold fewer elements than its share of the stream
    a_count = min(max(a_count, target - len(b_samples)), len(a_samples))
    b_count = min(target - a_count, len(b_samples))

    merged = uniformly_sample_array(a_samples, a_count, rng)
    merged.extend(uniformly_sample_array(b_samples, b_count, rng))

    return merged


def two_sample_test(
    a_samples: Sequence[Any], b_samples: Sequence[Any]
) -> TwoSampleTestResult:
    """
    Run a two-sided Mann-Whitney U test between two sample populations.

    NaN values are ignored. When either population is empty, or the test is
    undefined because every value is tied, the result carries ``p == 1.0``.

    :return: The U statistic and the p-value.
    """
    a_values = [float(value) for value in a_samples if not math.isnan(value)]
    b_values = [float(value) for value in b_samples if not math.isnan(value)]

    if not a_values or not b_values:
        return TwoSampleTestResult(statistic=math.nan, p=1.0)

    result = mannwhitneyu(a_values, b_values, alternative="two-sided")
    p_value = float(result.pvalue)

    if math.isnan(p_value):
        p_value = 1.0

    return TwoSampleTestResult(statistic=float(result.statistic), p=p_value)
