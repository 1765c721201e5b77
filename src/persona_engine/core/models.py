"""
Record types shared by the pipeline stages and the store.

Bounded numeric fields clamp on write instead of failing validation, so a
record can never hold a value outside its declared range.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

SHORT_TERM_LIMIT = 20
TRAJECTORY_LIMIT = 10


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp a value into ``[low, high]``."""
    return max(low, min(high, value))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def derive_conversation_id(user_id: str, chat_id: str) -> str:
    """Build the stable lookup key of a conversation."""
    return f"{user_id}:{chat_id}"


class Role(str, Enum):
    USER = "user"
    AGENT = "agent"


class FragmentType(str, Enum):
    FACT = "fact"
    EMOTIONAL_STATE = "emotional_state"
    PREFERENCE = "preference"
    CONCEPT = "concept"


class EmotionalState(str, Enum):
    ENGAGED = "engaged"
    REFLECTIVE = "reflective"
    CREATIVE = "creative"
    PATIENT = "patient"
    NOSTALGIC = "nostalgic"
    INSTRUCTIVE = "instructive"


class Sentiment(BaseModel):
    """Lexicon sentiment of a text."""

    label: Literal["positive", "negative", "neutral"] = "neutral"
    score: float = 0.0

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        return clamp(value, -1.0, 1.0)


class Emotion(BaseModel):
    """Lexicon emotion profile of a text."""

    primary: str = "neutral"
    secondary: List[str] = Field(default_factory=list)
    intensity: float = 0.0
    valence: float = 0.0
    arousal: float = 0.0

    @field_validator("secondary")
    @classmethod
    def _cap_secondary(cls, value: List[str]) -> List[str]:
        return value[:2]

    @field_validator("intensity", "arousal")
    @classmethod
    def _clamp_unit(cls, value: float) -> float:
        return clamp(value)

    @field_validator("valence")
    @classmethod
    def _clamp_valence(cls, value: float) -> float:
        return clamp(value, -1.0, 1.0)


class Analysis(BaseModel):
    """Feature bundle extracted from one user message."""

    tokens: List[str] = Field(default_factory=list)
    sentence_count: int = 0
    sentiment: Sentiment = Field(default_factory=Sentiment)
    complexity: float = 0.0
    urgency: Literal["low", "medium", "high"] = "low"
    abstraction_level: Literal["low", "medium", "high", "neutral"] = "neutral"
    topics: List[str] = Field(default_factory=lambda: ["general"])
    emotion: Emotion = Field(default_factory=Emotion)
    temporal_orientation: str = "present"
    novelty_score: float = 0.0
    semantic_density: float = 0.0
    contains_question: bool = False

    @field_validator("complexity", "novelty_score", "semantic_density")
    @classmethod
    def _clamp_unit(cls, value: float) -> float:
        return clamp(value)

    @field_validator("topics")
    @classmethod
    def _non_empty_topics(cls, value: List[str]) -> List[str]:
        return value or ["general"]

    @property
    def primary_topic(self) -> str:
        return self.topics[0]


class Message(BaseModel):
    """A single utterance in the conversation."""

    role: Role
    content: str
    created_at: datetime = Field(default_factory=utcnow)
    analysis: Optional[Analysis] = None
    meta: Dict[str, Any] = Field(default_factory=dict)


class MemoryFragment(BaseModel):
    """A weighted, tagged unit of background knowledge."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    conversation_id: str
    type: FragmentType = FragmentType.FACT
    content: str
    weight: float = 0.5
    accessed_count: int = 0
    last_accessed_at: datetime = Field(default_factory=utcnow)
    tags: Set[str] = Field(default_factory=set)

    @field_validator("weight")
    @classmethod
    def _clamp_weight(cls, value: float) -> float:
        return clamp(value)

    @field_validator("accessed_count")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)


class TraitRange(BaseModel):
    """Closed interval a trait is kept within."""

    min: float = 0.0
    max: float = 1.0

    @model_validator(mode="after")
    def _ordered(self) -> "TraitRange":
        if self.min > self.max:
            raise ValueError(f"min {self.min} exceeds max {self.max}")
        return self

    def clamp(self, value: float) -> float:
        return clamp(value, self.min, self.max)


class PersonalityVector(BaseModel):
    """Bounded named traits plus the current emotional state."""

    model_config = ConfigDict(validate_assignment=True)

    traits: Dict[str, float] = Field(default_factory=dict)
    knowledge_bias: Dict[str, float] = Field(default_factory=dict)
    bounds: Dict[str, TraitRange] = Field(default_factory=dict)
    current_emotional_state: EmotionalState = EmotionalState.REFLECTIVE

    @model_validator(mode="after")
    def _clamp_all(self) -> "PersonalityVector":
        for values in (self.traits, self.knowledge_bias):
            for name in list(values):
                values[name] = self._bounded(name, values[name])
        return self

    def _bounded(self, name: str, value: float) -> float:
        bound = self.bounds.get(name)
        if bound is None:
            return clamp(value)
        return bound.clamp(value)

    def trait(self, name: str, default: float = 0.0) -> float:
        return self.traits.get(name, default)

    def bias(self, name: str, default: float = 0.0) -> float:
        return self.knowledge_bias.get(name, default)

    def set_trait(self, name: str, value: float) -> None:
        self.traits[name] = self._bounded(name, value)

    def set_bias(self, name: str, value: float) -> None:
        self.knowledge_bias[name] = self._bounded(name, value)

    def as_metadata(self) -> Dict[str, Any]:
        return {
            **{name: round(value, 4) for name, value in self.traits.items()},
            "currentEmotion": self.current_emotional_state.value,
            "knowledgeBias": {
                name: round(value, 4) for name, value in self.knowledge_bias.items()
            },
        }


class ConversationState(BaseModel):
    """Mutable per-conversation aggregate persisted between turns."""

    model_config = ConfigDict(validate_assignment=True)

    conversation_id: str
    user_id: Optional[str] = None
    personality_vector: PersonalityVector = Field(default_factory=PersonalityVector)
    short_term_memory: List[Message] = Field(default_factory=list)
    emotional_trajectory: List[str] = Field(default_factory=list)
    interaction_count: int = 0
    conversational_depth: float = 0.0
    last_interaction_timestamp: Optional[datetime] = None

    @field_validator("short_term_memory")
    @classmethod
    def _cap_window(cls, value: List[Message]) -> List[Message]:
        return value[-SHORT_TERM_LIMIT:]

    @field_validator("emotional_trajectory")
    @classmethod
    def _cap_trajectory(cls, value: List[str]) -> List[str]:
        return value[-TRAJECTORY_LIMIT:]

    @field_validator("interaction_count")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)

    @field_validator("conversational_depth")
    @classmethod
    def _clamp_depth(cls, value: float) -> float:
        return clamp(value)

    def remember(self, message: Message) -> None:
        """Append a message, evicting the oldest beyond the window."""
        self.short_term_memory.append(message)
        del self.short_term_memory[:-SHORT_TERM_LIMIT]

    def record_emotion(self, tag: str) -> None:
        """Append an emotion tag, evicting the oldest beyond the cap."""
        self.emotional_trajectory.append(tag)
        del self.emotional_trajectory[:-TRAJECTORY_LIMIT]

    def messages_by(self, role: Role) -> List[Message]:
        return [m for m in self.short_term_memory if m.role == role]

    def last_user_message(self) -> Optional[Message]:
        users = self.messages_by(Role.USER)
        return users[-1] if users else None


class ResponseCandidate(BaseModel):
    """A generated reply proposal with its provenance."""

    text: str
    confidence: float = 0.0
    source: str
    complexity: float = 0.0
    coherence_score: float = 0.0
    provenance: List[str] = Field(default_factory=list)

    @field_validator("confidence", "complexity", "coherence_score")
    @classmethod
    def _clamp_unit(cls, value: float) -> float:
        return clamp(value)


class TurnMetadata(BaseModel):
    """Metadata returned with every reply."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    conversation_id: str
    topic: str
    sentiment: str
    emotional_state: str
    continuity_score: float
    response_type: str
    timestamp: datetime
    memory_references: List[str] = Field(default_factory=list)
    conversation_depth: float
    interest_level: float
    personality_vector: Dict[str, Any] = Field(default_factory=dict)
    generative_confidence: float
    response_origin: str
    knowledge_sources: List[str] = Field(default_factory=list)


class TurnOutcome(BaseModel):
    """Everything one turn produces: reply, metadata and state changes."""

    response: str
    metadata: TurnMetadata
    analysis: Analysis
    candidate: ResponseCandidate
    state: ConversationState
    memories: List[MemoryFragment] = Field(default_factory=list)
    new_fragments: List[MemoryFragment] = Field(default_factory=list)
