"""
Unit tests for the response finisher.
"""

import random

import pytest

from persona_engine.config.settings import FinisherConfig
from persona_engine.core.models import ConversationState, PersonalityVector
from persona_engine.data.persona import (
    NOSTALGIC_SUFFIXES,
    PLAYFUL_SUFFIXES,
    REFLECTIVE_PREFACES,
    WISDOM_SUFFIXES,
)
from persona_engine.pipeline.finisher import ResponseFinisher, normalize_text

ALWAYS = dict(
    nostalgia_probability=1.0,
    wisdom_probability=1.0,
    playfulness_probability=1.0,
    preface_probability=1.0,
)


def state_with(depth=0.0, **traits) -> ConversationState:
    return ConversationState(
        conversation_id="c",
        conversational_depth=depth,
        personality_vector=PersonalityVector(traits=traits),
    )


@pytest.fixture
def finisher() -> ResponseFinisher:
    """Create a finisher with the default gates."""
    return ResponseFinisher(FinisherConfig(), random.Random(8))


def test_stage_initialization(finisher: ResponseFinisher):
    """Test stage initialization."""
    assert finisher.stage_type == "finisher"


def test_normalize_text():
    """Test capitalization and terminal punctuation."""
    assert normalize_text("martha, eh") == "Martha, eh."
    assert normalize_text("  what now?  ") == "What now?"
    assert normalize_text("Careful!") == "Careful!"
    assert normalize_text("") == ""


def test_closed_gates_leave_text_alone(finisher: ResponseFinisher):
    """Test that low traits and shallow depth add nothing."""
    state = state_with(depth=0.1, nostalgia=0.5, wisdom=0.5, playfulness=0.5)
    assert finisher.finish("hello there", state) == "Hello there."


def test_open_gates_add_preface_and_bounded_suffixes():
    """Test decoration when every draw succeeds."""
    finisher = ResponseFinisher(FinisherConfig(**ALWAYS), random.Random(1))
    state = state_with(depth=0.9, nostalgia=0.9, wisdom=0.9, playfulness=0.9)

    result = finisher.finish("hello there", state)
    preface = next(p for p in REFLECTIVE_PREFACES if result.startswith(p))
    rest = result[len(preface) + 1 :]

    assert rest.startswith("Hello there.")
    suffix_text = rest[len("Hello there.") + 1 :]
    nostalgic = next(s for s in NOSTALGIC_SUFFIXES if suffix_text.startswith(s))
    wisdom = suffix_text[len(nostalgic) + 1 :]
    assert wisdom in WISDOM_SUFFIXES
    assert not any(s in result for s in PLAYFUL_SUFFIXES)


def test_zero_probability_never_decorates():
    """Test that open gates still depend on their draw."""
    config = FinisherConfig(
        nostalgia_probability=0.0,
        wisdom_probability=0.0,
        playfulness_probability=0.0,
        preface_probability=0.0,
    )
    finisher = ResponseFinisher(config, random.Random(1))
    state = state_with(depth=0.9, nostalgia=0.9, wisdom=0.9, playfulness=0.9)

    assert finisher.finish("hello", state) == "Hello."


def test_suffix_rates_follow_probabilities():
    """Test the nostalgic suffix rate over many draws."""
    finisher = ResponseFinisher(FinisherConfig(), random.Random(21))
    state = state_with(nostalgia=0.9, wisdom=0.1, playfulness=0.1)

    results = [finisher.finish("hello", state) for _ in range(3000)]
    decorated = sum(result != "Hello." for result in results)

    assert decorated / len(results) == pytest.approx(0.4, abs=0.04)


def test_same_seed_same_output():
    """Test reproducible finishing under a fixed seed."""
    state = state_with(depth=0.9, nostalgia=0.9, wisdom=0.9, playfulness=0.9)
    first = ResponseFinisher(rng=random.Random(4))
    second = ResponseFinisher(rng=random.Random(4))

    assert [first.finish("hi", state) for _ in range(20)] == [
        second.finish("hi", state) for _ in range(20)
    ]
