"""
Unit tests for the candidate generator.
"""

import random

import pytest

from persona_engine.config.settings import GeneratorConfig
from persona_engine.core.models import (
    ConversationState,
    FragmentType,
    MemoryFragment,
    Message,
    Role,
)
from persona_engine.data.persona import GrammarRule, KnowledgeItem, Template
from persona_engine.pipeline.analyzer import FeatureAnalyzer
from persona_engine.pipeline.candidate_generator import (
    CandidateGenerator,
    estimate_complexity,
    user_focus,
)

CID = "user-1:chat-1"


@pytest.fixture
def analyzer() -> FeatureAnalyzer:
    """Create a feature analyzer for building analyses."""
    return FeatureAnalyzer()


@pytest.fixture
def generator() -> CandidateGenerator:
    """Create a candidate generator with the persona tables."""
    return CandidateGenerator(GeneratorConfig(), random.Random(3))


def state_with(text: str) -> ConversationState:
    state = ConversationState(conversation_id=CID)
    state.remember(Message(role=Role.USER, content=text))
    return state


def family_memories():
    return [
        MemoryFragment(
            conversation_id=CID,
            type=FragmentType.FACT,
            content="Martha put up with me for 62 years.",
            weight=0.95,
            tags={"family"},
        ),
        MemoryFragment(
            conversation_id=CID,
            type=FragmentType.EMOTIONAL_STATE,
            content="Finn sits with me some evenings.",
            weight=0.8,
            tags={"family"},
        ),
        MemoryFragment(
            conversation_id=CID,
            type=FragmentType.CONCEPT,
            content="Build something that matters.",
            weight=0.5,
            tags={"wisdom"},
        ),
        MemoryFragment(
            conversation_id=CID,
            type=FragmentType.PREFERENCE,
            content="Valves, warm like a kitten.",
            weight=0.4,
            tags={"technology"},
        ),
    ]


def test_stage_initialization(generator: CandidateGenerator):
    """Test stage initialization."""
    assert generator.stage_type == "candidate_generator"


def test_all_strategies_contribute_in_order(generator, analyzer):
    """Test that every strategy runs and output keeps strategy order."""
    text = "I love my wife Martha, tell me about family"
    candidates = generator.generate(analyzer.analyze(text), state_with(text), family_memories())
    sources = [c.source for c in candidates]

    assert {"template", "memory", "grammar", "knowledge"} <= set(sources)
    order = ["template", "memory", "grammar", "knowledge"]
    assert sources == sorted(sources, key=order.index)


def test_memory_transform(generator, analyzer):
    """Test memory candidates for the top three fragments."""
    text = "Tell me about family"
    memories = family_memories()
    candidates = generator.generate(analyzer.analyze(text), state_with(text), memories)
    from_memory = [c for c in candidates if c.source == "memory"]

    assert len(from_memory) == 3
    assert [c.provenance for c in from_memory] == [[m.id] for m in memories[:3]]
    assert from_memory[0].confidence == pytest.approx(0.95 * 0.8)
    assert all(c.text.endswith("family") for c in from_memory)
    assert "Martha put up with me for 62 years." in from_memory[0].text


def test_grammar_rules_instantiated_twice(generator, analyzer):
    """Test grammar slot filling for matching rules only."""
    text = "Tell me about family"
    memories = family_memories()
    candidates = generator.generate(analyzer.analyze(text), state_with(text), memories)
    grammar = [c for c in candidates if c.source == "grammar"]
    rule_ids = [c.provenance[0] for c in grammar]

    assert rule_ids == [
        "grammar:family-lattice",
        "grammar:family-lattice",
        "grammar:family-connection",
        "grammar:family-connection",
    ]
    assert grammar[0].confidence == pytest.approx(0.82 * 0.9)
    # the memory slot draws a family-tagged fragment when one was retrieved
    family_ids = {m.id for m in memories if "family" in m.tags}
    assert all(len(c.provenance) == 2 for c in grammar)
    assert all(c.provenance[1] in family_ids for c in grammar)


def test_grammar_memory_slot_uses_static_filler_without_memories(generator, analyzer):
    """Test the static memory filler."""
    text = "Tell me about family"
    candidates = generator.generate(analyzer.analyze(text), state_with(text), [])
    grammar = [c for c in candidates if c.source == "grammar"]

    assert grammar
    assert all(len(c.provenance) == 1 for c in grammar)
    assert not [c for c in candidates if c.source == "memory"]


def test_knowledge_lookup(generator, analyzer):
    """Test knowledge candidates for the matched topics."""
    text = "Tell me about family"
    candidates = generator.generate(analyzer.analyze(text), state_with(text), [])
    knowledge = [c for c in candidates if c.source == "knowledge"]

    assert [c.provenance for c in knowledge] == [
        ["knowledge:family:1"],
        ["knowledge:family:2"],
        ["knowledge:family:3"],
    ]
    assert all(c.confidence == pytest.approx(0.7) for c in knowledge)


def test_templates_padded_with_generics(analyzer):
    """Test padding when fewer than three templates match."""
    generator = CandidateGenerator(
        rng=random.Random(1),
        templates=[Template("only", "About {topic}.", topics=("code",))],
        grammar_rules=[],
        knowledge={},
    )
    text = "My computer is old"
    candidates = generator.generate(analyzer.analyze(text), state_with(text), [])

    assert len(candidates) == 3
    assert candidates[0].text == "About code."
    assert [c.provenance[0] for c in candidates[1:]] == [
        "template:generic-chew",
        "template:generic-think",
    ]


def test_template_placeholders_and_fitness(analyzer):
    """Test placeholder filling and the confidence formula."""
    template = Template(
        "placeholders",
        "{topic}|{sentiment}|{emotion}|{userFocus}",
        topics=("family",),
        sentiments=("positive",),
        complexity=0.5,
        base_confidence=0.5,
    )
    generator = CandidateGenerator(
        rng=random.Random(1),
        templates=[template],
        generic_templates=[],
        grammar_rules=[],
        knowledge={},
    )
    text = "I love my wife Martha"
    analysis = analyzer.analyze(text)
    [candidate] = generator.generate(analysis, state_with(text), [])

    assert candidate.text == "family|warm|love|martha"
    fitness = 0.4 * 1.0 + 0.3 * (1 - abs(0.5 - analysis.complexity)) + 0.3 * 1.0
    assert candidate.confidence == pytest.approx(0.5 * fitness)


def test_neutral_emotion_placeholder(analyzer):
    """Test the emotion placeholder without an emotion."""
    generator = CandidateGenerator(
        rng=random.Random(1),
        templates=[],
        generic_templates=[Template("g", "A {emotion} {sentiment} one.")],
        grammar_rules=[],
        knowledge={},
    )
    text = "Hello"
    [candidate] = generator.generate(analyzer.analyze(text), state_with(text), [])
    assert candidate.text == "A quiet thoughtful one."


def test_coherence_against_latest_user_message(analyzer):
    """Test coherence scores against the window's latest user message."""
    generator = CandidateGenerator(
        rng=random.Random(1),
        templates=[],
        generic_templates=[],
        grammar_rules=[],
        knowledge={
            "family": [
                KnowledgeItem("knowledge:family:x", "family", "My wife Martha."),
                KnowledgeItem("knowledge:family:y", "family", "Martha's computer."),
            ]
        },
    )
    text = "Tell me about my family"
    candidates = generator.generate(analyzer.analyze(text), state_with(text), [])

    assert candidates[0].coherence_score == pytest.approx(1.0)
    assert candidates[1].coherence_score == pytest.approx(0.5)


def test_custom_grammar_rule_filler_formatting(analyzer):
    """Test topic substitution inside grammar fillers."""
    rule = GrammarRule(
        "placeholders",
        topics=("code",),
        slots=("intro", "connection"),
        fillers={"intro": ["On {topic}."], "connection": ["And you?"]},
        base_confidence=0.5,
    )
    generator = CandidateGenerator(
        rng=random.Random(1),
        templates=[],
        generic_templates=[],
        grammar_rules=[rule],
        knowledge={},
    )
    text = "I wrote code"
    candidates = generator.generate(analyzer.analyze(text), state_with(text), [])

    assert [c.text for c in candidates] == ["On code. And you?", "On code. And you?"]
    assert candidates[0].confidence == pytest.approx(0.45)


def test_generation_is_reproducible_with_a_seed(analyzer):
    """Test that a fixed seed fixes the phrasing."""
    text = "Tell me about the war"
    analysis = analyzer.analyze(text)
    first = CandidateGenerator(rng=random.Random(9)).generate(
        analysis, state_with(text), family_memories()
    )
    second = CandidateGenerator(rng=random.Random(9)).generate(
        analysis, state_with(text), family_memories()
    )
    assert [c.text for c in first] == [c.text for c in second]


def test_helpers(analyzer):
    """Test user focus and complexity estimation."""
    assert user_focus(analyzer.analyze("I love my wife Martha")) == "martha"
    assert user_focus(analyzer.analyze("is it")) == "that"
    assert estimate_complexity("") == 0.0
    assert 0.0 < estimate_complexity("A perfectly ordinary sentence.") <= 1.0
