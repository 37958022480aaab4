"""Orders scored candidates: final score desc, then newest first."""
from review_feed.ranking.models import ScoredCandidate


def rank(scored: list[ScoredCandidate]) -> list[ScoredCandidate]:
    return sorted(scored, key=lambda s: s.position, reverse=True)
