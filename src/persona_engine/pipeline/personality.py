"""
Implementation of the personality state machine.
"""

import random
from typing import Dict, Optional

from ..config.settings import PersonalityConfig
from ..core.errors import ConfigurationError
from ..core.models import (
    ConversationState,
    EmotionalState,
    PersonalityVector,
    TraitRange,
)
from ..core.stage import PipelineStage

DEFAULT_VOLATILITY = 0.1


def generate_personality_vector(
    config: Optional[PersonalityConfig] = None, rng: Optional[random.Random] = None
) -> PersonalityVector:
    """Draw a fresh personality vector.

    Every trait and knowledge bias is drawn uniformly within its configured
    bounds, and the bounds travel with the vector so later writes stay inside.

    Args:
        config: Optional personality configuration
        rng: Random source for the draws

    Returns:
        New personality vector in the derived initial state
    """
    config = config or PersonalityConfig()
    rng = rng or random.Random()

    settings = {**config.traits, **config.knowledge_bias}
    vector = PersonalityVector(
        traits={name: rng.uniform(s.min, s.max) for name, s in config.traits.items()},
        knowledge_bias={
            name: rng.uniform(s.min, s.max) for name, s in config.knowledge_bias.items()
        },
        bounds={name: TraitRange(min=s.min, max=s.max) for name, s in settings.items()},
    )
    vector.current_emotional_state = EmotionalState(_first_matching_state(config, vector))
    return vector


def _first_matching_state(config: PersonalityConfig, vector: PersonalityVector) -> str:
    for rule in config.state_rules:
        if vector.trait(rule.trait) > rule.threshold:
            return rule.state
    return config.default_state


class PersonalityStateMachine(PipelineStage):
    """Moves the persona between emotional states and nudges its traits."""

    def __init__(
        self,
        config: Optional[PersonalityConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(config or PersonalityConfig(), rng)
        self._check_states()

    @property
    def stage_type(self) -> str:
        return "personality"

    def _check_states(self) -> None:
        known = {state.value for state in EmotionalState}
        named = {rule.state for rule in self.config.state_rules}
        named.add(self.config.default_state)
        named.update(self.config.transitions)
        for row in self.config.transitions.values():
            named.update(row)
        named.update(self.config.state_targets)

        unknown = named - known
        if unknown:
            raise ConfigurationError(f"Unknown emotional states: {sorted(unknown)}")

    def derive_state(self, vector: PersonalityVector) -> str:
        """Return the state implied by the trait thresholds.

        Rules are checked in priority order and the first whose trait exceeds
        its threshold wins; otherwise the default state applies.
        """
        return _first_matching_state(self.config, vector)

    def transition(self, state: str) -> str:
        """Draw the next state from the outgoing probability table.

        Args:
            state: Current state name

        Returns:
            Next state name; unassigned probability mass keeps the state
        """
        row: Dict[str, float] = self.config.normalized_transitions(state)
        draw = self.rng.random()
        cumulative = 0.0
        for target, probability in row.items():
            cumulative += probability
            if draw < cumulative:
                return target
        return state

    def adjust_traits(self, state: str, vector: PersonalityVector) -> PersonalityVector:
        """Blend each targeted trait toward the state's target value.

        Args:
            state: State whose trait targets apply
            vector: Vector to adjust in place

        Returns:
            The adjusted vector
        """
        for trait, target in self.config.state_targets.get(state, {}).items():
            settings = self.config.traits.get(trait)
            volatility = settings.volatility if settings else DEFAULT_VOLATILITY
            current = vector.trait(trait, target)
            vector.set_trait(trait, current * (1 - volatility) + target * volatility)
        return vector

    def advance(self, state: ConversationState) -> str:
        """Run one step of the machine on a conversation.

        Args:
            state: Conversation whose personality vector moves

        Returns:
            The new emotional state name
        """
        vector = state.personality_vector
        current = self.derive_state(vector)
        next_state = self.transition(current)
        self.adjust_traits(next_state, vector)

        vector.current_emotional_state = EmotionalState(next_state)
        state.record_emotion(next_state)
        self.logger.info(f"Emotional state: {current} -> {next_state}")
        return next_state
