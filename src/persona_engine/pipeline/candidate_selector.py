"""
Implementation of the candidate selector stage.
"""

from typing import List, Optional, Set

from ..config.settings import SelectorConfig
from ..core.models import (
    Analysis,
    ConversationState,
    PersonalityVector,
    ResponseCandidate,
    Role,
    clamp,
)
from ..core.stage import PipelineStage
from ..data.lexicons import (
    NOSTALGIC_LANGUAGE,
    PHILOSOPHICAL_LANGUAGE,
    TECHNICAL_LANGUAGE,
)
from .analyzer import extract_topics, sentiment_label, tokenize


def token_similarity(first: str, second: str) -> float:
    """Jaccard similarity of the token sets of two texts."""
    a: Set[str] = set(tokenize(first))
    b: Set[str] = set(tokenize(second))
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


class CandidateSelector(PipelineStage):
    """Scores the candidate pool and picks the best reply."""

    def __init__(self, config: Optional[SelectorConfig] = None):
        super().__init__(config or SelectorConfig())

    @property
    def stage_type(self) -> str:
        return "candidate_selector"

    def fallback(self) -> ResponseCandidate:
        """Candidate used when generation produced nothing."""
        return ResponseCandidate(
            text=self.config.fallback_text,
            confidence=self.config.fallback_confidence,
            source="fallback",
        )

    def select(
        self,
        candidates: List[ResponseCandidate],
        analysis: Analysis,
        state: ConversationState,
    ) -> ResponseCandidate:
        """Pick the highest scoring candidate.

        Args:
            candidates: Candidate pool in generation order
            analysis: Analysis of the current message
            state: Conversation state, for novelty and personality

        Returns:
            The best candidate; the earliest one wins ties
        """
        if not candidates:
            self.logger.warning("Empty candidate pool, using fallback reply")
            return self.fallback()

        best, best_score = candidates[0], self.score(candidates[0], analysis, state)
        for candidate in candidates[1:]:
            score = self.score(candidate, analysis, state)
            if score > best_score:
                best, best_score = candidate, score

        self.logger.info(
            f"Candidate selected: source={best.source}, score={best_score:.3f}, "
            f"pool={len(candidates)}"
        )
        return best

    def score(
        self,
        candidate: ResponseCandidate,
        analysis: Analysis,
        state: ConversationState,
    ) -> float:
        """Weighted score of a single candidate."""
        return (
            candidate.confidence * self.config.confidence_weight
            + self.relevance(candidate, analysis) * self.config.relevance_weight
            + self.novelty(candidate, state) * self.config.novelty_weight
            + candidate.coherence_score * self.config.coherence_weight
            + self.personality_match(candidate, state.personality_vector)
            * self.config.personality_weight
            + self.sentiment_fit(candidate, analysis) * self.config.sentiment_weight
        )

    def relevance(self, candidate: ResponseCandidate, analysis: Analysis) -> float:
        score = 0.5
        if set(extract_topics(candidate.text)) & set(analysis.topics):
            score += 0.3
        if analysis.contains_question and "?" in candidate.text:
            score += 0.2
        return clamp(score)

    def novelty(self, candidate: ResponseCandidate, state: ConversationState) -> float:
        """One minus the closest match among the latest agent replies."""
        recent = state.messages_by(Role.AGENT)[-self.config.novelty_window :]
        if not recent:
            return 1.0
        closest = max(token_similarity(candidate.text, m.content) for m in recent)
        return max(self.config.novelty_floor, 1.0 - closest)

    def personality_match(
        self, candidate: ResponseCandidate, vector: PersonalityVector
    ) -> float:
        text = candidate.text.lower()
        gates = [
            (vector.trait("nostalgia") > self.config.nostalgia_threshold, NOSTALGIC_LANGUAGE),
            (vector.bias("technology") > self.config.technology_threshold, TECHNICAL_LANGUAGE),
            (
                vector.bias("philosophy") > self.config.philosophy_threshold,
                PHILOSOPHICAL_LANGUAGE,
            ),
        ]
        score = 0.5
        for open_gate, vocabulary in gates:
            if open_gate and any(phrase in text for phrase in vocabulary):
                score += 0.2
        return clamp(score)

    def sentiment_fit(self, candidate: ResponseCandidate, analysis: Analysis) -> float:
        label = sentiment_label(candidate.text)
        if label == analysis.sentiment.label:
            return 0.8
        if label == "neutral":
            return 0.5
        return 0.3
