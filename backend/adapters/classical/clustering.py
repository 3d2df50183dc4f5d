"""Agglomerative clustering and speaker-count estimation under cosine distance.

Clustering is centroid-linkage: every merge joins the two active clusters whose
centroids are closest, and the survivor's centroid becomes the size-weighted
mean of both. Each merge scans all active pairs, so a run over n vectors costs
O(n^3) in the worst case. That is fine for one recording's window count (tens
to a few hundred windows) but does not scale to hours of audio.
"""

import logging
from typing import Sequence, Union

import numpy as np

from domain.models import FeatureVector

logger = logging.getLogger(__name__)

VectorLike = Union[FeatureVector, np.ndarray, Sequence[float]]


def _as_matrix(vectors: Sequence[VectorLike]) -> np.ndarray:
    rows = [v.features if isinstance(v, FeatureVector) else v for v in vectors]
    return np.asarray(rows, dtype=np.float64)


def cosine_distance(a: np.ndarray, b: np.ndarray) -> float:
    """1 - cosine similarity. Anything compared with a zero vector is at distance 1."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    denom = np.sqrt(np.dot(a, a)) * np.sqrt(np.dot(b, b))
    if denom == 0:
        return 1.0
    return float(1.0 - np.dot(a, b) / denom)


def cosine_distance_matrix(matrix: np.ndarray) -> np.ndarray:
    """Pairwise cosine distances between the rows of matrix."""
    norms = np.sqrt(np.einsum("ij,ij->i", matrix, matrix))
    denom = np.outer(norms, norms)
    dots = matrix @ matrix.T
    safe = np.where(denom > 0, denom, 1.0)
    return np.where(denom > 0, 1.0 - dots / safe, 1.0)


def agglomerative_clustering(vectors: Sequence[VectorLike], num_clusters: int) -> list[int]:
    """Label each vector with a cluster index in 0..num_clusters-1.

    Labels are dense and numbered in order of first appearance. With no more
    vectors than clusters every vector keeps its own label.
    """
    n = len(vectors)
    if n == 0:
        return []
    if num_clusters < 1:
        raise ValueError(f"num_clusters must be positive, got {num_clusters}")
    if n <= num_clusters:
        return list(range(n))

    centroids = _as_matrix(vectors).copy()
    sizes = np.ones(n, dtype=np.int64)
    labels = np.arange(n)
    active = list(range(n))

    while len(active) > num_clusters:
        dist = cosine_distance_matrix(centroids[active])
        dist[np.tril_indices(len(active))] = np.inf
        # argmin over the row-major upper triangle picks the first (i, j) on ties
        flat = int(np.argmin(dist))
        i, j = divmod(flat, len(active))
        keep, drop = active[i], active[j]

        total = sizes[keep] + sizes[drop]
        centroids[keep] = (centroids[keep] * sizes[keep] + centroids[drop] * sizes[drop]) / total
        sizes[keep] = total
        labels[labels == drop] = keep
        del active[j]

    remap: dict[int, int] = {}
    for label in labels:
        remap.setdefault(int(label), len(remap))
    return [remap[int(label)] for label in labels]


def silhouette_score(distances: np.ndarray, labels: Sequence[int]) -> float:
    """Mean silhouette over all points, given a precomputed distance matrix.

    A point with no same-cluster neighbours has a = 0; a point with no other
    cluster has b = 0; a point with a = b = 0 scores 0.
    """
    labels = np.asarray(labels)
    n = len(labels)
    if n == 0:
        return 0.0

    unique = np.unique(labels)
    total = 0.0
    for i in range(n):
        row = distances[i]
        same = labels == labels[i]
        same[i] = False
        a = float(row[same].mean()) if same.any() else 0.0

        b = np.inf
        for other in unique:
            if other == labels[i]:
                continue
            b = min(b, float(row[labels == other].mean()))
        if b == np.inf:
            b = 0.0

        if a > 0 or b > 0:
            total += (b - a) / max(a, b)
    return total / n


def estimate_num_speakers(
    voiced: Sequence[VectorLike],
    max_speakers: int = 5,
    min_score: float = 0.1,
) -> int:
    """Pick a speaker count for the voiced vectors by trial clustering.

    Tries k in [2, min(max_speakers, n // 2)] and keeps the k with the best mean
    silhouette. Fewer than 4 vectors, or a best score under min_score, means
    one speaker: quiet or single-voice recordings should not be over-split.
    """
    n = len(voiced)
    if n < 4:
        return 1

    distances = cosine_distance_matrix(_as_matrix(voiced))
    best_k = 2
    best_score = -np.inf
    for k in range(2, min(max_speakers, n // 2) + 1):
        labels = agglomerative_clustering(voiced, k)
        score = silhouette_score(distances, labels)
        logger.debug(f"k={k} silhouette={score:.3f}")
        if score > best_score:
            best_score = score
            best_k = k

    if best_score < min_score:
        logger.info(f"Best silhouette {best_score:.3f} below {min_score}, assuming one speaker")
        return 1
    logger.info(f"Estimated {best_k} speakers (silhouette={best_score:.3f})")
    return best_k
