"""
modules/planning/accommodation_clustering.py
----------------------------------------------
K-means grouping of accommodations on (price, rating, distance_from_center).

  1. n ≤ k            → accommodation i gets label i (no iterations).
  2. Initial centroids drawn uniformly over price 0–10000, rating 0–5,
     distance 0–50 km from an injectable random.Random (seed it in tests).
  3. Lloyd iterations: assign each point to the nearest centroid (Euclidean,
     lowest centroid index wins a tie), stop when no label changes, else move
     each centroid to the mean of its members.  Empty clusters keep their
     centroid.  Capped at KMEANS_MAX_ITERATIONS.

Features are not normalised, so price dominates the distance.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import replace
from typing import Optional, Sequence

import config
from schemas.travel import Accommodation

logger = logging.getLogger(__name__)

# Upper bounds of the random centroid initialisation, per feature
_INIT_SCALE = (10000.0, 5.0, 50.0)

_CLUSTER_LABELS = ("budget", "mid-range", "premium")


def _features(acc: Accommodation) -> tuple[float, float, float]:
    return (acc.price or 0.0, acc.rating or 0.0, acc.distance_from_center or 0.0)


def euclidean(p: Sequence[float], q: Sequence[float]) -> float:
    return math.sqrt(sum((a - b) ** 2 for a, b in zip(p, q)))


def _nearest(point: Sequence[float], centroids: list[tuple[float, ...]]) -> int:
    best, best_dist = 0, math.inf
    for idx, centroid in enumerate(centroids):
        dist = euclidean(point, centroid)
        if dist < best_dist:
            best, best_dist = idx, dist
    return best


def cluster_accommodations(
    accommodations: list[Accommodation],
    k: Optional[int] = None,
    rng: Optional[random.Random] = None,
    max_iterations: Optional[int] = None,
) -> list[Accommodation]:
    """
    Label each accommodation with a cluster in [0, k).

    Returns copies; the input records are not modified.
    """
    k = config.KMEANS_DEFAULT_K if k is None else k
    if k < 1:
        raise ValueError("k must be at least 1")
    max_iterations = config.KMEANS_MAX_ITERATIONS if max_iterations is None else max_iterations

    if len(accommodations) <= k:
        return [replace(acc, cluster=i) for i, acc in enumerate(accommodations)]

    rng = rng or random.Random()
    points = [_features(a) for a in accommodations]
    centroids: list[tuple[float, ...]] = [
        tuple(rng.random() * scale for scale in _INIT_SCALE) for _ in range(k)
    ]
    labels: list[Optional[int]] = [None] * len(points)

    iterations = 0
    while iterations < max_iterations:
        changed = False
        for i, point in enumerate(points):
            nearest = _nearest(point, centroids)
            if labels[i] != nearest:
                labels[i] = nearest
                changed = True
        if not changed:
            break

        for c in range(k):
            members = [points[i] for i, label in enumerate(labels) if label == c]
            if members:
                centroids[c] = tuple(sum(col) / len(members) for col in zip(*members))
        iterations += 1

    logger.debug("[KMeans] n=%d k=%d converged after %d iteration(s)", len(points), k, iterations)
    return [replace(acc, cluster=label) for acc, label in zip(accommodations, labels)]


def summarize_clusters(accommodations: list[Accommodation]) -> list[dict]:
    """
    Per-cluster count / average price / average rating.

    Clusters are ordered by average price; the cheapest is "budget", the most
    expensive "premium" and anything in between "mid-range".
    """
    groups: dict[int, list[Accommodation]] = {}
    for acc in accommodations:
        if acc.cluster is not None:
            groups.setdefault(acc.cluster, []).append(acc)

    summary = [
        {
            "cluster":       cluster,
            "count":         len(members),
            "averagePrice":  round(sum(m.price for m in members) / len(members), 2),
            "averageRating": round(sum(m.rating for m in members) / len(members), 2),
        }
        for cluster, members in groups.items()
    ]
    summary.sort(key=lambda s: (s["averagePrice"], s["cluster"]))

    last = len(summary) - 1
    for rank, entry in enumerate(summary):
        if rank == 0:
            entry["label"] = _CLUSTER_LABELS[0]
        elif rank == last:
            entry["label"] = _CLUSTER_LABELS[2]
        else:
            entry["label"] = _CLUSTER_LABELS[1]
    return summary
