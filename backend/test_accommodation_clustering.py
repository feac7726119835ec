"""
Tests for modules/planning/accommodation_clustering.py
"""
import random

import pytest

from modules.planning.accommodation_clustering import (
    cluster_accommodations, euclidean, summarize_clusters,
)
from schemas.travel import Accommodation


def _hotel(hid, price, rating=4.0, distance=2.0):
    return Accommodation(id=hid, name=f"H{hid}", price=price, rating=rating, distance_from_center=distance)


def test_euclidean():
    assert euclidean((0, 0, 0), (3, 4, 0)) == 5.0


def test_small_input_gets_index_labels():
    hotels = [_hotel(1, 1000), _hotel(2, 5000)]
    clustered = cluster_accommodations(hotels, k=3)
    assert [h.cluster for h in clustered] == [0, 1]


def test_k_below_one_rejected():
    with pytest.raises(ValueError):
        cluster_accommodations([_hotel(1, 1000)], k=0)


def test_labels_within_range_and_input_untouched():
    hotels = [_hotel(i, price) for i, price in enumerate([800, 900, 1000, 4800, 5000, 5200, 9500, 9800])]
    clustered = cluster_accommodations(hotels, k=3, rng=random.Random(7))

    assert all(0 <= h.cluster < 3 for h in clustered)
    assert all(h.cluster is None for h in hotels)
    assert [h.id for h in clustered] == [h.id for h in hotels]


def test_well_separated_groups_share_labels():
    hotels = [_hotel(i, price) for i, price in enumerate([1000, 1010, 1020, 9000, 9010, 9020])]
    clustered = cluster_accommodations(hotels, k=2, rng=random.Random(3))
    labels = [h.cluster for h in clustered]

    assert labels[0] == labels[1] == labels[2]
    assert labels[3] == labels[4] == labels[5]


def test_same_seed_is_deterministic():
    hotels = [_hotel(i, 500 * i, rating=3 + i % 3) for i in range(10)]
    first = cluster_accommodations(hotels, k=3, rng=random.Random(42))
    second = cluster_accommodations(hotels, k=3, rng=random.Random(42))
    assert [h.cluster for h in first] == [h.cluster for h in second]


def test_summarize_orders_by_price():
    hotels = [
        Accommodation(id=1, price=9000, rating=4.8, cluster=0),
        Accommodation(id=2, price=1000, rating=3.5, cluster=1),
        Accommodation(id=3, price=2000, rating=4.5, cluster=1),
        Accommodation(id=4, price=4000, rating=4.0, cluster=2),
    ]
    summary = summarize_clusters(hotels)

    assert [s["cluster"] for s in summary] == [1, 2, 0]
    assert [s["label"] for s in summary] == ["budget", "mid-range", "premium"]
    assert summary[0] == {
        "cluster": 1, "count": 2, "averagePrice": 1500.0, "averageRating": 4.0, "label": "budget",
    }
