"""
Configuration settings for the persona engine.
"""

import os
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator


class AnalyzerConfig(BaseModel):
    """Configuration for the feature analyzer."""

    token_length_weight: float = Field(
        0.4, description="Weight of average token length in complexity"
    )
    diversity_weight: float = Field(
        0.4, description="Weight of lexical diversity in complexity"
    )
    sentence_weight: float = Field(
        0.2, description="Weight of sentence count in complexity"
    )
    sentence_saturation: int = Field(
        5, description="Sentence count at which the sentence factor saturates"
    )


class RankerConfig(BaseModel):
    """Configuration for memory retrieval and ranking."""

    weight_factor: float = Field(0.4, description="Weight of fragment weight")
    recency_factor: float = Field(0.3, description="Weight of access recency")
    frequency_factor: float = Field(0.2, description="Weight of access frequency")
    relevance_factor: float = Field(0.1, description="Weight of topic relevance")
    recency_window_days: float = Field(
        30.0, description="Days after which recency reaches zero"
    )
    access_saturation: int = Field(
        100, description="Access count at which frequency saturates"
    )
    per_strategy_limit: int = Field(5, description="Fragments fetched per strategy")
    top_n: int = Field(10, description="Maximum fragments returned")
    shallow_threshold: float = Field(
        0.3, description="Depth below which the shallow bucket is used"
    )
    deep_threshold: float = Field(
        0.7, description="Depth from which the deep bucket is used"
    )


class GeneratorConfig(BaseModel):
    """Configuration for candidate generation."""

    min_templates: int = Field(3, description="Minimum number of templates used")
    memory_transform_count: int = Field(
        3, description="Ranked memories turned into candidates"
    )
    memory_confidence_factor: float = Field(
        0.8, description="Multiplier applied to memory weight"
    )
    grammar_instantiations: int = Field(
        2, description="Instantiations drawn per matching grammar rule"
    )
    grammar_confidence_factor: float = Field(
        0.9, description="Multiplier applied to grammar rule confidence"
    )
    knowledge_confidence: float = Field(
        0.7, description="Fixed confidence of knowledge candidates"
    )
    sentiment_fitness_weight: float = Field(0.4, description="Template sentiment fit")
    complexity_fitness_weight: float = Field(
        0.3, description="Template complexity fit"
    )
    topic_fitness_weight: float = Field(0.3, description="Template topic fit")


class SelectorConfig(BaseModel):
    """Configuration for candidate selection."""

    confidence_weight: float = Field(0.30, description="Weight of confidence")
    relevance_weight: float = Field(0.25, description="Weight of relevance")
    novelty_weight: float = Field(0.15, description="Weight of novelty")
    coherence_weight: float = Field(0.15, description="Weight of coherence")
    personality_weight: float = Field(0.10, description="Weight of personality match")
    sentiment_weight: float = Field(0.05, description="Weight of sentiment fit")
    novelty_window: int = Field(3, description="Agent messages compared for novelty")
    novelty_floor: float = Field(0.1, description="Lowest novelty score")
    nostalgia_threshold: float = Field(0.7, description="Nostalgic language gate")
    technology_threshold: float = Field(0.7, description="Technical language gate")
    philosophy_threshold: float = Field(0.6, description="Philosophical language gate")
    fallback_confidence: float = Field(0.3, description="Fallback confidence")
    fallback_text: str = Field(
        "Let me think... The patterns are there, just have to find them.",
        description="Reply used when no candidate was generated",
    )


class TraitSettings(BaseModel):
    """Bounds and volatility of a single personality trait."""

    min: float = Field(..., ge=0.0, le=1.0)
    max: float = Field(..., ge=0.0, le=1.0)
    volatility: float = Field(0.1, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_range(self) -> "TraitSettings":
        if self.min > self.max:
            raise ValueError(f"min {self.min} exceeds max {self.max}")
        return self


def _default_traits() -> Dict[str, TraitSettings]:
    return {
        "curiosity": TraitSettings(min=0.8, max=1.0, volatility=0.15),
        "nostalgia": TraitSettings(min=0.7, max=1.0, volatility=0.1),
        "wisdom": TraitSettings(min=0.6, max=1.0, volatility=0.05),
        "playfulness": TraitSettings(min=0.4, max=0.7, volatility=0.2),
        "patience": TraitSettings(min=0.9, max=1.0, volatility=0.05),
        "creativity": TraitSettings(min=0.7, max=1.0, volatility=0.15),
        "skepticism": TraitSettings(min=0.2, max=0.6, volatility=0.1),
        "enthusiasm": TraitSettings(min=0.5, max=0.9, volatility=0.2),
    }


def _default_biases() -> Dict[str, TraitSettings]:
    return {
        "family": TraitSettings(min=0.7, max=1.0),
        "technology": TraitSettings(min=0.8, max=1.0),
        "war": TraitSettings(min=0.4, max=0.7),
        "philosophy": TraitSettings(min=0.6, max=1.0),
        "history": TraitSettings(min=0.7, max=0.9),
        "science": TraitSettings(min=0.6, max=0.9),
    }


class StateRule(BaseModel):
    """A state is entered when its trait exceeds the threshold."""

    state: str
    trait: str
    threshold: float


class PersonalityConfig(BaseModel):
    """Configuration for the personality state machine."""

    traits: Dict[str, TraitSettings] = Field(default_factory=_default_traits)
    knowledge_bias: Dict[str, TraitSettings] = Field(default_factory=_default_biases)
    state_rules: List[StateRule] = Field(
        default_factory=lambda: [
            StateRule(state="nostalgic", trait="nostalgia", threshold=0.9),
            StateRule(state="instructive", trait="wisdom", threshold=0.85),
            StateRule(state="creative", trait="creativity", threshold=0.9),
            StateRule(state="engaged", trait="curiosity", threshold=0.95),
            StateRule(state="patient", trait="patience", threshold=0.97),
        ],
        description="Ordered state rules; the first matching rule wins",
    )
    default_state: str = Field("reflective", description="State when no rule fires")
    transitions: Dict[str, Dict[str, float]] = Field(
        default_factory=lambda: {
            "engaged": {"reflective": 0.3, "creative": 0.2, "nostalgic": 0.2},
            "reflective": {"nostalgic": 0.3, "instructive": 0.2, "patient": 0.2},
            "creative": {"engaged": 0.3, "reflective": 0.2},
            "patient": {"reflective": 0.3, "instructive": 0.3, "engaged": 0.2},
            "nostalgic": {"reflective": 0.4, "instructive": 0.2},
            "instructive": {"patient": 0.3, "engaged": 0.2, "nostalgic": 0.2},
        },
        description="Outgoing probabilities; the remainder stays in place",
    )
    state_targets: Dict[str, Dict[str, float]] = Field(
        default_factory=lambda: {
            "engaged": {"curiosity": 0.95, "enthusiasm": 0.8, "playfulness": 0.6},
            "reflective": {"wisdom": 0.85, "patience": 0.95, "enthusiasm": 0.6},
            "creative": {"creativity": 0.95, "playfulness": 0.65, "curiosity": 0.9},
            "patient": {"patience": 0.98, "skepticism": 0.3},
            "nostalgic": {"nostalgia": 0.95, "wisdom": 0.8, "enthusiasm": 0.55},
            "instructive": {"wisdom": 0.9, "skepticism": 0.45, "curiosity": 0.85},
        },
        description="Trait values each state pulls the vector toward",
    )

    @field_validator("transitions")
    @classmethod
    def _check_transitions(
        cls, value: Dict[str, Dict[str, float]]
    ) -> Dict[str, Dict[str, float]]:
        for state, row in value.items():
            if any(p < 0 for p in row.values()):
                raise ValueError(f"negative transition probability for {state}")
            if sum(row.values()) > 1.0 + 1e-9:
                raise ValueError(f"transition probabilities for {state} exceed 1")
        return value

    def normalized_transitions(self, state: str) -> Dict[str, float]:
        """Return the outgoing table of a state with its explicit self-loop."""
        row = dict(self.transitions.get(state, {}))
        remainder = max(0.0, 1.0 - sum(row.values()))
        row[state] = row.get(state, 0.0) + remainder
        return row


class FinisherConfig(BaseModel):
    """Configuration for response finishing."""

    nostalgia_threshold: float = Field(0.7, description="Nostalgic suffix gate")
    nostalgia_probability: float = Field(0.4, description="Nostalgic suffix chance")
    wisdom_threshold: float = Field(0.6, description="Wisdom suffix gate")
    wisdom_probability: float = Field(0.3, description="Wisdom suffix chance")
    playfulness_threshold: float = Field(0.6, description="Playful suffix gate")
    playfulness_probability: float = Field(0.25, description="Playful suffix chance")
    depth_threshold: float = Field(0.5, description="Reflective preface gate")
    preface_probability: float = Field(0.2, description="Reflective preface chance")
    max_suffixes: int = Field(2, description="Maximum suffixes per response")


class ConversationConfig(BaseModel):
    """Configuration for conversation state bookkeeping."""

    depth_growth_rate: float = Field(
        0.05, description="Depth gained per unit of message complexity"
    )
    history_limit: int = Field(20, description="Messages loaded with the state")


class StoreConfig(BaseModel):
    """Configuration for the memory store collaborator."""

    backend: str = Field("memory", description="Store backend: memory or json")
    path: Optional[str] = Field(None, description="Directory for the json backend")
    timeout_seconds: float = Field(2.0, description="Bound on every store call")


class SystemConfig(BaseModel):
    """Main system configuration."""

    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    ranker: RankerConfig = Field(default_factory=RankerConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    selector: SelectorConfig = Field(default_factory=SelectorConfig)
    personality: PersonalityConfig = Field(default_factory=PersonalityConfig)
    finisher: FinisherConfig = Field(default_factory=FinisherConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    random_seed: Optional[int] = Field(None, description="Seed for phrasing draws")
    debug_mode: bool = Field(False, description="Enable debug mode")
    log_level: str = Field("INFO", description="Logging level")


def load_config(env_file: Optional[str] = None) -> SystemConfig:
    """Build a configuration from the environment.

    Args:
        env_file: Optional path of a .env file to load first

    Returns:
        System configuration with environment overrides applied
    """
    load_dotenv(env_file)

    config = SystemConfig()
    if level := os.getenv("PERSONA_LOG_LEVEL"):
        config.log_level = level
    if seed := os.getenv("PERSONA_RANDOM_SEED"):
        config.random_seed = int(seed)
    if timeout := os.getenv("PERSONA_STORE_TIMEOUT"):
        config.store.timeout_seconds = float(timeout)
    if backend := os.getenv("PERSONA_STORE_BACKEND"):
        config.store.backend = backend
    if path := os.getenv("PERSONA_STORE_PATH"):
        config.store.path = path
    return config


# Default configuration instance
default_config = SystemConfig()
