# pixel_palette/kmeans.py
from __future__ import annotations

"""
Best-of-N k-means over Lab samples.

Each run is a Lloyd iteration seeded with k-means++ from `params.seed + run`.
The run with the lowest score (sum of squared Lab distances) is returned; ties
go to the earliest run. Runs can be spread over a thread pool without changing
the result.

Empty clusters: a centroid left without samples after an assignment step is
moved onto the sample farthest from its own centroid. If every sample already
sits on a centroid (k larger than the number of distinct colours) the empty
centroid keeps its position.
"""

import math
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .core_types import ClusterResult, InvalidInputError, KmeansParams, Lab
from .utils import debug_log, format_pairs


def _as_samples(samples: Sequence[Sequence[float]] | np.ndarray) -> NDArray[np.float64]:
    """Flatten to float64 [N,3] and reject empty or non-finite input."""
    try:
        arr = np.asarray(samples, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"samples are not a numeric (N,3) array: {e}") from e
    if arr.size == 0:
        raise InvalidInputError("cannot cluster an empty sample set")
    if arr.ndim == 0 or arr.shape[-1] != 3:
        raise InvalidInputError(f"samples must have 3 channels, got shape {arr.shape}")
    arr = arr.reshape(-1, 3)
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError("samples contain NaN or infinite values")
    return arr


def _assign(
    samples: NDArray[np.float64], centroids: NDArray[np.float64]
) -> Tuple[NDArray[np.int32], NDArray[np.float64]]:
    """
    Nearest centroid per sample by squared Euclidean distance.
    Scans centroids in order so the lowest index wins ties. O(N) memory.
    """
    n = samples.shape[0]
    best_d2 = np.full(n, np.inf, dtype=np.float64)
    labels = np.zeros(n, dtype=np.int32)
    for j in range(centroids.shape[0]):
        diff = samples - centroids[j]
        d2 = np.einsum("ij,ij->i", diff, diff)
        closer = d2 < best_d2
        best_d2[closer] = d2[closer]
        labels[closer] = j
    return labels, best_d2


def _init_centroids(
    samples: NDArray[np.float64], k: int, rng: np.random.Generator
) -> NDArray[np.float64]:
    """k-means++ seeding drawn from the samples."""
    n = samples.shape[0]
    centroids = np.empty((k, 3), dtype=np.float64)
    centroids[0] = samples[int(rng.integers(n))]
    diff = samples - centroids[0]
    closest = np.einsum("ij,ij->i", diff, diff)
    for j in range(1, k):
        total = float(closest.sum())
        if total > 0.0:
            cumulative = np.cumsum(closest)
            idx = int(np.searchsorted(cumulative, rng.random() * total, side="right"))
            idx = min(idx, n - 1)
        else:
            # every sample already coincides with a chosen centroid
            idx = int(rng.integers(n))
        centroids[j] = samples[idx]
        diff = samples - centroids[j]
        np.minimum(closest, np.einsum("ij,ij->i", diff, diff), out=closest)
    return centroids


def _update_centroids(
    samples: NDArray[np.float64],
    labels: NDArray[np.int32],
    dist2: NDArray[np.float64],
    centroids: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Mean of each cluster; empty clusters follow the re-seed policy."""
    k = centroids.shape[0]
    counts = np.bincount(labels, minlength=k)
    sums = np.stack(
        [np.bincount(labels, weights=samples[:, c], minlength=k) for c in range(3)],
        axis=1,
    )
    updated = centroids.copy()
    nonempty = counts > 0
    updated[nonempty] = sums[nonempty] / counts[nonempty, None]

    empty = np.flatnonzero(~nonempty)
    if empty.size:
        order = np.argsort(-dist2, kind="stable")
        donors = [int(i) for i in order[: empty.size] if dist2[i] > 0.0]
        for j, donor in zip(empty.tolist(), donors):
            updated[j] = samples[donor]
    return updated


def _run_once(
    samples: NDArray[np.float64], params: KmeansParams, run: int
) -> ClusterResult:
    """One seeded Lloyd run."""
    rng = np.random.default_rng(int(params.seed) + run)
    centroids = _init_centroids(samples, int(params.k), rng)
    threshold = float(params.convergence_threshold)

    iterations = 0
    for iterations in range(1, int(params.max_iterations) + 1):
        labels, dist2 = _assign(samples, centroids)
        updated = _update_centroids(samples, labels, dist2, centroids)
        movement = float(np.sqrt(((updated - centroids) ** 2).sum(axis=1)).sum())
        centroids = updated
        if movement < threshold:
            break

    final: Lab = centroids.astype(np.float32)
    labels, dist2 = _assign(samples, final.astype(np.float64))
    return ClusterResult(
        centroids=final,
        assignments=labels,
        score=float(dist2.sum()),
        run=run,
        iterations=iterations,
    )


def cluster(
    samples: Sequence[Sequence[float]] | np.ndarray,
    params: KmeansParams,
    *,
    workers: int = 1,
) -> ClusterResult:
    """
    Cluster Lab samples into params.k centroids, keeping the best of params.runs.

    Args:
      samples: Lab values, any shape (...,3)
      params : KmeansParams (validated here)
      workers: threads used to execute runs concurrently
    Returns:
      ClusterResult of the lowest-score run
    Raises:
      InvalidInputError on empty/non-finite samples, bad params, or a
      non-finite score.
    """
    params.validate()
    data = _as_samples(samples)
    runs = int(params.runs)

    if workers > 1 and runs > 1:
        with ThreadPoolExecutor(max_workers=min(workers, runs)) as pool:
            futures = [pool.submit(_run_once, data, params, r) for r in range(runs)]
            results: List[ClusterResult] = [f.result() for f in futures]
    else:
        results = [_run_once(data, params, r) for r in range(runs)]

    for res in results:
        if params.verbose:
            debug_log(
                format_pairs(
                    [
                        ("Run", res.run),
                        ("Seed", int(params.seed) + res.run),
                        ("Iterations", res.iterations),
                        ("Score", res.score),
                    ]
                )
            )
        if not math.isfinite(res.score):
            raise InvalidInputError(f"run {res.run} produced a non-finite score")

    # min() keeps the first of equal scores, so the earliest run wins ties
    best = min(results, key=lambda res: res.score)
    if params.verbose:
        debug_log(f"kept run {best.run} (score {best.score:.3f})")
    return best


__all__ = ["cluster"]
