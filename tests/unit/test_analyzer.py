"""
Unit tests for the feature analyzer.
"""

import pytest

from persona_engine.pipeline.analyzer import (
    FeatureAnalyzer,
    extract_topics,
    sentiment_label,
    tokenize,
    topic_similarity,
)


@pytest.fixture
def analyzer() -> FeatureAnalyzer:
    """Create a feature analyzer instance for testing."""
    return FeatureAnalyzer()


def test_stage_initialization(analyzer: FeatureAnalyzer):
    """Test stage initialization."""
    assert analyzer.stage_type == "analyzer"


def test_hello_scenario(analyzer: FeatureAnalyzer):
    """Test the plain greeting."""
    analysis = analyzer.analyze("Hello")

    assert analysis.topics == ["general"]
    assert analysis.sentiment.label == "neutral"
    assert analysis.urgency == "low"
    assert analysis.contains_question is False


def test_family_scenario(analyzer: FeatureAnalyzer):
    """Test a loving message asking about family."""
    analysis = analyzer.analyze("I love my wife Martha, tell me about family")

    assert "family" in analysis.topics
    assert analysis.sentiment.label == "positive"
    assert analysis.contains_question is True
    assert analysis.emotion.primary == "love"


def test_analysis_is_deterministic(analyzer: FeatureAnalyzer):
    """Test that identical text yields identical analyses."""
    text = "Do you remember the war? It was awful, but we had hope."
    first = analyzer.analyze(text)
    second = FeatureAnalyzer().analyze(text)

    assert first == second


def test_topics_keep_declaration_order():
    """Test topic ordering and the general fallback."""
    assert extract_topics("My computer and my family") == ["family", "code"]
    assert extract_topics("Nothing in particular") == ["general"]


def test_sentiment_scoring(analyzer: FeatureAnalyzer):
    """Test sentiment labels and scores."""
    positive = analyzer.analyze("What a wonderful, lovely day")
    negative = analyzer.analyze("I feel sad and lonely")

    assert positive.sentiment.label == "positive"
    assert positive.sentiment.score == pytest.approx(0.2)
    assert negative.sentiment.label == "negative"
    assert negative.sentiment.score == pytest.approx(-0.2)
    assert sentiment_label("just a table") == "neutral"


def test_sentiment_score_is_clamped(analyzer: FeatureAnalyzer):
    """Test that the sentiment score never leaves [-1, 1]."""
    analysis = analyzer.analyze(" ".join(["wonderful"] * 15))
    assert analysis.sentiment.score == 1.0


def test_urgency_levels(analyzer: FeatureAnalyzer):
    """Test urgency detection."""
    assert analyzer.analyze("Help, this is urgent").urgency == "high"
    assert analyzer.analyze("Really!").urgency == "medium"
    assert analyzer.analyze("Fine day").urgency == "low"


def test_abstraction_levels(analyzer: FeatureAnalyzer):
    """Test abstraction classification."""
    assert analyzer.analyze("Sunny outside").abstraction_level == "neutral"
    assert analyzer.analyze("The meaning and purpose of it").abstraction_level == "high"
    assert analyzer.analyze("A chair, a table and a door").abstraction_level == "low"
    assert analyzer.analyze("Truth and the computer").abstraction_level == "medium"


def test_emotion_profile(analyzer: FeatureAnalyzer):
    """Test primary and secondary emotions."""
    analysis = analyzer.analyze("I'm so happy and proud, but I miss her")

    assert analysis.emotion.primary == "joy"
    assert analysis.emotion.secondary == ["pride", "sadness"]
    assert analysis.emotion.intensity == pytest.approx(0.15)
    assert analysis.emotion.valence == pytest.approx(0.1)
    assert analysis.emotion.arousal == pytest.approx(0.5 * 0.15 + 0.5)


def test_neutral_emotion_without_hits(analyzer: FeatureAnalyzer):
    """Test the default emotion."""
    emotion = analyzer.analyze("The kettle").emotion
    assert emotion.primary == "neutral"
    assert emotion.secondary == []
    assert emotion.intensity == 0.0


def test_temporal_orientation(analyzer: FeatureAnalyzer):
    """Test temporal orientation and its default."""
    assert analyzer.analyze("We once had a dog, years ago").temporal_orientation == "past"
    assert analyzer.analyze("I will go tomorrow").temporal_orientation == "future"
    assert analyzer.analyze("Kettle").temporal_orientation == "present"


def test_question_detection(analyzer: FeatureAnalyzer):
    """Test question detection."""
    assert analyzer.analyze("  What did you build?").contains_question is True
    assert analyzer.analyze("How it works, I never knew").contains_question is True
    assert analyzer.analyze("Whatever").contains_question is False
    assert analyzer.analyze("").contains_question is False


def test_ratios_are_bounded(analyzer: FeatureAnalyzer):
    """Test the unit-interval features."""
    analysis = analyzer.analyze("the the the code")

    assert analysis.novelty_score == pytest.approx(0.5)
    assert analysis.semantic_density == pytest.approx(0.25)
    assert 0.0 <= analysis.complexity <= 1.0


def test_empty_message(analyzer: FeatureAnalyzer):
    """Test that an empty message is analyzable."""
    analysis = analyzer.analyze("")

    assert analysis.tokens == []
    assert analysis.complexity == 0.0
    assert analysis.topics == ["general"]


def test_helpers():
    """Test the tokenizer and topic similarity helpers."""
    assert tokenize("Don't PANIC, Martha!") == ["don't", "panic", "martha"]
    assert tokenize("Café in München, 1962") == ["café", "in", "münchen", "1962"]
    assert tokenize("'quoted' snake_case") == ["quoted", "snake", "case"]
    assert topic_similarity(["family"], ["family", "code"]) == pytest.approx(0.5)
    assert topic_similarity([], ["family"]) == 0.0
