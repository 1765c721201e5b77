"""
Implementation of the feature analyzer stage.
"""

import re
from collections import Counter
from statistics import mean
from typing import Dict, List, Optional, Tuple

from ..config.settings import AnalyzerConfig
from ..core.models import Analysis, Emotion, Sentiment, clamp
from ..core.stage import PipelineStage
from ..data.lexicons import (
    ABSTRACT_WORDS,
    CONCRETE_WORDS,
    EMOTION_LEXICON,
    INQUIRY_PHRASES,
    INTERROGATIVE_LEADS,
    NEGATIVE_WORDS,
    POSITIVE_WORDS,
    STOPWORDS,
    TEMPORAL_MARKERS,
    TOPIC_KEYWORDS,
    URGENT_WORDS,
)

TOKEN_PATTERN = re.compile(r"[^\W_]+(?:'[^\W_]+)*")
SENTENCE_SPLIT = re.compile(r"[.!?]+")


def tokenize(text: str) -> List[str]:
    """Split text into lowercase word tokens."""
    return TOKEN_PATTERN.findall(text.lower())


def extract_topics(text: str) -> List[str]:
    """Return matching topic categories in declaration order.

    Args:
        text: Text to inspect

    Returns:
        Non-empty list of topics, ``["general"]`` when nothing matches
    """
    lowered = text.lower()
    topics = [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(keyword in lowered for keyword in keywords)
    ]
    return topics or ["general"]


def score_sentiment(tokens: List[str]) -> Sentiment:
    """Score tokens against the positive/negative lexicons."""
    positive = sum(token in POSITIVE_WORDS for token in tokens)
    negative = sum(token in NEGATIVE_WORDS for token in tokens)

    if positive > negative:
        label = "positive"
    elif negative > positive:
        label = "negative"
    else:
        label = "neutral"
    return Sentiment(label=label, score=(positive - negative) / 10)


def sentiment_label(text: str) -> str:
    return score_sentiment(tokenize(text)).label


def topic_similarity(first: List[str], second: List[str]) -> float:
    """Jaccard similarity of two topic lists."""
    a, b = set(first), set(second)
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


class FeatureAnalyzer(PipelineStage):
    """Turns a raw message into an ``Analysis``.

    The analysis is a pure function of the text: no conversation state is
    consulted and no random draws are made.
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        super().__init__(config or AnalyzerConfig())

    @property
    def stage_type(self) -> str:
        return "analyzer"

    def analyze(self, text: str) -> Analysis:
        """Extract the feature bundle of a message.

        Args:
            text: Raw message text

        Returns:
            Analysis of the message
        """
        self.logger.debug(f"Analyzing message of {len(text)} chars")

        tokens = tokenize(text)
        sentences = [s for s in SENTENCE_SPLIT.split(text) if s.strip()]
        complexity = self._complexity(tokens, len(sentences))

        analysis = Analysis(
            tokens=tokens,
            sentence_count=len(sentences),
            sentiment=score_sentiment(tokens),
            complexity=complexity,
            urgency=self._urgency(text, tokens),
            abstraction_level=self._abstraction(tokens),
            topics=extract_topics(text),
            emotion=self._emotion(tokens),
            temporal_orientation=self._temporal_orientation(tokens),
            novelty_score=len(set(tokens)) / len(tokens) if tokens else 0.0,
            semantic_density=(
                sum(t not in STOPWORDS for t in tokens) / len(tokens) if tokens else 0.0
            ),
            contains_question=self._contains_question(text),
        )

        self.logger.info(
            f"Message analyzed: topics={analysis.topics}, "
            f"sentiment={analysis.sentiment.label}, "
            f"complexity={analysis.complexity:.2f}"
        )
        return analysis

    def _complexity(self, tokens: List[str], sentence_count: int) -> float:
        if not tokens:
            return 0.0

        avg_length = mean(len(token) for token in tokens)
        diversity = len(set(tokens)) / len(tokens)
        sentence_factor = min(1.0, sentence_count / self.config.sentence_saturation)

        return clamp(
            self.config.token_length_weight * min(1.0, avg_length / 10)
            + self.config.diversity_weight * diversity
            + self.config.sentence_weight * sentence_factor
        )

    def _urgency(self, text: str, tokens: List[str]) -> str:
        if any(token in URGENT_WORDS for token in tokens):
            return "high"
        if "?" in text or "!" in text:
            return "medium"
        return "low"

    def _abstraction(self, tokens: List[str]) -> str:
        abstract = sum(token in ABSTRACT_WORDS for token in tokens)
        concrete = sum(token in CONCRETE_WORDS for token in tokens)

        if abstract == 0 and concrete == 0:
            return "neutral"
        if abstract > 2 * concrete:
            return "high"
        if concrete > 2 * abstract:
            return "low"
        return "medium"

    def _emotion(self, tokens: List[str]) -> Emotion:
        counts = Counter(tokens)
        # (emotion, hits) in lexicon declaration order
        tallies: List[Tuple[str, int]] = []
        valence_hits: Dict[str, int] = {"positive": 0, "negative": 0}

        for category, emotions in EMOTION_LEXICON.items():
            for emotion, cues in emotions.items():
                hits = sum(counts[cue] for cue in cues)
                tallies.append((emotion, hits))
                if category in valence_hits:
                    valence_hits[category] += hits

        matched = [(emotion, hits) for emotion, hits in tallies if hits > 0]
        if not matched:
            return Emotion()

        # sorted() is stable, so equal counts keep declaration order
        ranked = sorted(matched, key=lambda item: item[1], reverse=True)
        total_hits = sum(hits for _, hits in matched)
        intensity = clamp(total_hits * 0.05)
        spread = min(1.0, len(matched) / 3)

        return Emotion(
            primary=ranked[0][0],
            secondary=[emotion for emotion, _ in ranked[1:3]],
            intensity=intensity,
            valence=valence_hits["positive"] * 0.1 - valence_hits["negative"] * 0.1,
            arousal=0.5 * intensity + 0.5 * spread,
        )

    def _temporal_orientation(self, tokens: List[str]) -> str:
        counts = Counter(tokens)
        best, best_hits = "present", 0
        for timeframe, markers in TEMPORAL_MARKERS.items():
            hits = sum(counts[marker] for marker in markers)
            if hits > best_hits:
                best, best_hits = timeframe, hits
        return best

    def _contains_question(self, text: str) -> bool:
        trimmed = text.strip().lower()
        if not trimmed:
            return False
        if "?" in trimmed:
            return True

        if any(re.match(rf"{re.escape(lead)}\b", trimmed) for lead in INTERROGATIVE_LEADS):
            return True
        return any(phrase in trimmed for phrase in INQUIRY_PHRASES)
