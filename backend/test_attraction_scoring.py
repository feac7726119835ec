"""
Tests for modules/planning/attraction_scoring.py
"""
from unittest.mock import patch

import pytest

from modules.planning.attraction_scoring import (
    ContentRecommender, attraction_document, cosine_similarity, filter_by_budget, insights, similarity_to,
)
from schemas.travel import Attraction, UserProfile


def _attr(name, category="", price=0, rating=4.0, description="", facilities=(), reviews=0, duration=""):
    return Attraction(
        id=name, name=name, category=category, price=price, rating=rating,
        description=description, facilities=list(facilities), reviews=reviews, duration=duration,
    )


@pytest.fixture
def catalogue():
    return [
        _attr("Old Fort", "heritage", 50, 4.6, "historic fort with history tours", ["Parking", "Guide"], 8000, "2-3 hours"),
        _attr("Sunset Beach", "beach", 0, 4.4, "sandy beach for swimming", ["Restrooms"], 12000, "Full day"),
        _attr("Spice Market", "shopping", 0, 4.0, "busy market for food lovers", [], 300, "1-2 hours"),
        _attr("Sky Lounge", "nightlife", 3000, 3.9, "rooftop bar", ["Bar"], 100, "2 hours"),
    ]


def test_cosine_identical_documents():
    assert cosine_similarity("fort history", "fort history") == pytest.approx(1.0)


def test_cosine_disjoint_and_empty():
    assert cosine_similarity("beach", "fort") == 0.0
    assert cosine_similarity("", "fort") == 0.0


def test_cosine_uses_term_frequency():
    # u = {a:1}, v = {a:2, b:1} → 2 / (1 * sqrt(5))
    assert cosine_similarity("a", "a a b") == pytest.approx(2 / 5 ** 0.5)


def test_cosine_ignores_case():
    assert cosine_similarity("Fort History", "fort history") == pytest.approx(1.0)


def test_similarity_to_scores_every_document_in_order():
    scores = similarity_to("fort", ["beach", "fort", "fort beach", ""])
    assert scores[0] == 0.0
    assert scores[1] == pytest.approx(1.0)
    assert scores[2] == pytest.approx(1 / 2 ** 0.5)
    assert scores[3] == 0.0


def test_similarity_to_skips_vectorizer_for_empty_vocabulary():
    with patch("modules.planning.attraction_scoring.CountVectorizer") as vectorizer:
        assert similarity_to("", ["fort", "beach"]) == [0.0, 0.0]
        assert similarity_to("fort", ["", "  "]) == [0.0, 0.0]
        assert similarity_to("fort", []) == []
    vectorizer.assert_not_called()


def test_attraction_document_is_lowercase(catalogue):
    doc = attraction_document(catalogue[0])
    assert doc.startswith("old fort historic fort")
    assert doc.endswith("heritage parking guide")


def test_score_attractions_ranks_by_interest(catalogue):
    ranked = ContentRecommender().score_attractions(["history", "fort"], catalogue)
    assert ranked[0].name == "Old Fort"
    assert len(ranked) == len(catalogue)


def test_score_attractions_ties_keep_input_order(catalogue):
    ranked = ContentRecommender().score_attractions(["zzz"], catalogue)
    assert [a.name for a in ranked] == [a.name for a in catalogue]


def test_score_attractions_respects_top_n(catalogue):
    assert len(ContentRecommender(top_n=2).score_attractions(["beach"], catalogue)) == 2


@pytest.mark.parametrize("tier,names", [
    ("low", ["Old Fort", "Sunset Beach", "Spice Market"]),
    ("luxury", ["Old Fort", "Sunset Beach", "Spice Market", "Sky Lounge"]),
    ("nonsense", ["Old Fort", "Sunset Beach", "Spice Market"]),
])
def test_filter_by_budget(catalogue, tier, names):
    assert [a.name for a in filter_by_budget(catalogue, tier)] == names


def test_personalized_filters_by_trip_and_group(catalogue):
    profile = UserProfile(interests=["beach"], trip_type="relaxation", group_type="family", duration=6)
    ranked = ContentRecommender().personalized(catalogue, profile)

    assert [a.name for a, _ in ranked] == ["Sunset Beach"]
    # 4.4 * 0.4 + interest 1 + budget 0.5 + full day 0.3
    assert ranked[0][1] == pytest.approx(3.56)


def test_personalized_solo_drops_expensive(catalogue):
    profile = UserProfile(group_type="solo")
    names = [a.name for a, _ in ContentRecommender().personalized(catalogue, profile)]
    assert "Sky Lounge" not in names


def test_comprehensive_sections(catalogue):
    profile = UserProfile(interests=["market"], budget="low")
    result = ContentRecommender().comprehensive(catalogue, profile)

    assert [a.name for a in result["topRated"]] == ["Old Fort"]
    assert [a.name for a in result["trending"]] == ["Old Fort", "Sunset Beach"]
    assert result["contentBased"][0].name == "Spice Market"
    assert all(isinstance(entry, tuple) for entry in result["personalized"])


def test_confidence(catalogue):
    recs = {"a": catalogue[:2], "b": [(catalogue[2], 1.0), (catalogue[3], 0.5)]}
    assert ContentRecommender.confidence(recs) == 50
    assert ContentRecommender.confidence({"a": []}) == 0


def test_insights(catalogue):
    result = insights(catalogue)

    assert result["categories"] == {"heritage": 1, "beach": 1, "shopping": 1, "nightlife": 1}
    assert result["averageRating"] == pytest.approx(4.225, abs=0.01)
    assert result["priceRange"] == {"min": 50, "max": 3000}
    assert result["topFacilities"][0] == "Parking"
    assert "Beach destinations available - perfect for relaxation" in result["recommendations"]


def test_insights_empty():
    result = insights([])
    assert result["averageRating"] == 0.0
    assert result["priceRange"] == {"min": 0, "max": 0}
