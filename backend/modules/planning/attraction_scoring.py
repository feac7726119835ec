"""
modules/planning/attraction_scoring.py
----------------------------------------
Content-based attraction recommender.

Each attraction becomes a lower-cased document

    "<name> <description> <category> <facility> <facility> ..."

and is compared with the user's interests joined into one document. Both go
through a scikit-learn CountVectorizer (whitespace tokens, no stemming, no IDF
weighting) with the user in row 0, then sklearn cosine_similarity.

  sim(u, a) = Σ_w tf_u(w)·tf_a(w) / (‖tf_u‖ · ‖tf_a‖)        ∈ [0, 1]

Ranking is a stable sort on similarity (ties keep input order) and the top
RECOMMENDATION_TOP_N are returned.

Also here:
  filter_by_budget()   price-tier filter, composed by the caller
  personalized()       trip/group-type filter + rating/interest/budget/duration score
  comprehensive()      topRated / budgetFriendly / contentBased / trending / personalized
  confidence()         % of recommended items rated ≥ 4.3
  insights()           category counts, rating average, price range, top facilities
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Iterable, Optional, Sequence

from sklearn.feature_extraction.text import CountVectorizer
from sklearn.metrics.pairwise import cosine_similarity as pairwise_cosine

import config
from schemas.travel import Attraction, UserProfile
from modules.observability.logger import StructuredLogger

logger = logging.getLogger(__name__)

_perf_logger = StructuredLogger()

# Max entry price per budget tier (INR).  Minimum is always 0.
BUDGET_PRICE_CAPS: dict[str, float] = {
    "low":    100,
    "medium": 500,
    "high":   2000,
    "luxury": 10000,
}
_DEFAULT_TIER = "medium"

# Categories kept for each trip type; other trip types keep everything.
_TRIP_TYPE_CATEGORIES: dict[str, frozenset[str]] = {
    "adventure":  frozenset({"adventure", "nature", "beach"}),
    "cultural":   frozenset({"heritage", "cultural", "monument"}),
    "relaxation": frozenset({"beach", "nature", "scenic"}),
}
_FAMILY_FACILITIES = frozenset({"Parking", "Restrooms"})
_SOLO_MAX_PRICE = 500

_TOP_RATED_MIN       = 4.5
_TRENDING_MIN_REVIEWS = 5000
_CONFIDENT_RATING    = 4.3
_SECTION_SIZE        = 5
_PERSONALIZED_SIZE   = 10


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------

def similarity_to(profile: str, documents: Sequence[str]) -> list[float]:
    """Cosine of *profile* against each document, clamped to [0, 1]."""
    if not documents:
        return []
    # CountVectorizer raises on an empty vocabulary
    if not profile.split() or not any(doc.split() for doc in documents):
        return [0.0] * len(documents)
    vectorizer = CountVectorizer(tokenizer=str.split, token_pattern=None, lowercase=True)
    counts = vectorizer.fit_transform([profile, *documents])
    row = pairwise_cosine(counts[0], counts[1:])[0]
    return [max(0.0, min(1.0, float(value))) for value in row]


def cosine_similarity(doc1: str, doc2: str) -> float:
    """Cosine of the term-frequency vectors of two whitespace-tokenised strings."""
    return similarity_to(doc1, [doc2])[0]


def attraction_document(attraction: Attraction) -> str:
    parts = [attraction.name, attraction.description, attraction.category, *attraction.facilities]
    return " ".join(p for p in parts if p).lower()


def filter_by_budget(attractions: Iterable[Attraction], tier: str) -> list[Attraction]:
    """Keep attractions priced within [0, cap(tier)].  Unknown tiers use 'medium'."""
    cap = BUDGET_PRICE_CAPS.get(tier, BUDGET_PRICE_CAPS[_DEFAULT_TIER])
    return [a for a in attractions if 0 <= a.price <= cap]


# ---------------------------------------------------------------------------
# ContentRecommender
# ---------------------------------------------------------------------------

class ContentRecommender:
    """
    Ranks attractions against a user's interests.

    Usage:
        recommender = ContentRecommender()
        ranked = recommender.score_attractions(["heritage", "photography"], attractions)
    """

    def __init__(self, top_n: Optional[int] = None) -> None:
        self.top_n = config.RECOMMENDATION_TOP_N if top_n is None else top_n

    def similarity_scores(
        self,
        interests: list[str],
        attractions: list[Attraction],
    ) -> list[tuple[Attraction, float]]:
        profile = " ".join(interests).lower()
        scores = similarity_to(profile, [attraction_document(a) for a in attractions])
        return list(zip(attractions, scores))

    def score_attractions(
        self,
        interests: list[str],
        attractions: list[Attraction],
        top_n: Optional[int] = None,
    ) -> list[Attraction]:
        """Top-N attractions by similarity to *interests*, best first."""
        limit = self.top_n if top_n is None else top_n
        with _perf_logger.timed("ContentRecommender.score_attractions", candidates=len(attractions)):
            scored = self.similarity_scores(interests, attractions)
            # sorted() is stable, so equal scores keep their input order
            ranked = sorted(scored, key=lambda pair: pair[1], reverse=True)
        return [a for a, _ in ranked[:limit]]

    # =========================================================================
    # Personalised ranking
    # =========================================================================

    @staticmethod
    def personalized_score(attraction: Attraction, profile: UserProfile) -> float:
        score = attraction.rating * 0.4

        name = attraction.name.lower()
        description = attraction.description.lower()
        if any(i.lower() in name or i.lower() in description for i in profile.interests):
            score += 1

        cap = BUDGET_PRICE_CAPS.get(profile.budget, BUDGET_PRICE_CAPS[_DEFAULT_TIER])
        if attraction.price <= cap:
            score += 0.5

        if profile.duration <= 2 and "1-2 hours" in attraction.duration:
            score += 0.3
        elif profile.duration >= 5 and "Full day" in attraction.duration:
            score += 0.3
        return score

    def personalized(
        self,
        attractions: list[Attraction],
        profile: UserProfile,
    ) -> list[tuple[Attraction, float]]:
        """Filter by trip type and group type, then rank by personalized_score()."""
        pool = list(attractions)
        allowed = _TRIP_TYPE_CATEGORIES.get(profile.trip_type)
        if allowed is not None:
            pool = [a for a in pool if a.category in allowed]

        if profile.group_type == "family":
            pool = [a for a in pool if _FAMILY_FACILITIES.intersection(a.facilities)]
        elif profile.group_type == "solo":
            pool = [a for a in pool if a.price <= _SOLO_MAX_PRICE]

        scored = [(a, self.personalized_score(a, profile)) for a in pool]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:_PERSONALIZED_SIZE]

    def comprehensive(self, attractions: list[Attraction], profile: UserProfile) -> dict:
        """
        Five recommendation lists for one destination.

        personalized entries are (attraction, score) pairs; every other list
        holds plain attractions.
        """
        return {
            "topRated":       [a for a in attractions if a.rating >= _TOP_RATED_MIN][:_SECTION_SIZE],
            "budgetFriendly": filter_by_budget(attractions, profile.budget)[:_SECTION_SIZE],
            "contentBased":   self.score_attractions(profile.interests, attractions)[:_SECTION_SIZE],
            "trending":       [a for a in attractions if a.reviews > _TRENDING_MIN_REVIEWS][:_SECTION_SIZE],
            "personalized":   self.personalized(attractions, profile),
        }

    @staticmethod
    def confidence(recommendations: dict) -> int:
        """Share of recommended items rated ≥ 4.3, as a whole percentage (0 when empty)."""
        items: list[Attraction] = []
        for entries in recommendations.values():
            for entry in entries:
                items.append(entry[0] if isinstance(entry, tuple) else entry)
        if not items:
            return 0
        high = sum(1 for a in items if a.rating >= _CONFIDENT_RATING)
        return int(math.floor(high / len(items) * 100 + 0.5))


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

def insights(attractions: list[Attraction]) -> dict:
    categories: dict[str, int] = {}
    facility_counts: Counter = Counter()
    for a in attractions:
        categories[a.category] = categories.get(a.category, 0) + 1
        facility_counts.update(a.facilities)

    average = sum(a.rating for a in attractions) / len(attractions) if attractions else 0.0

    prices = [a.price for a in attractions if a.price > 0]
    price_range = {"min": min(prices), "max": max(prices)} if prices else {"min": 0, "max": 0}

    # most_common() keeps first-seen order among equal counts
    top_facilities = [name for name, _ in facility_counts.most_common(5)]

    notes: list[str] = []
    if categories.get("beach"):
        notes.append("Beach destinations available - perfect for relaxation")
    if categories.get("heritage"):
        notes.append("Rich cultural heritage sites to explore")
    if attractions and average >= 4.3:
        notes.append("High-rated attractions with excellent visitor satisfaction")

    return {
        "categories":      categories,
        "averageRating":   round(average, 2),
        "priceRange":      price_range,
        "topFacilities":   top_facilities,
        "recommendations": notes,
    }
