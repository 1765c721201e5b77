"""
Implementation of the response finisher stage.
"""

import random
from typing import List, Optional

from ..config.settings import FinisherConfig
from ..core.models import ConversationState
from ..core.stage import PipelineStage
from ..data.persona import (
    NOSTALGIC_SUFFIXES,
    PLAYFUL_SUFFIXES,
    REFLECTIVE_PREFACES,
    WISDOM_SUFFIXES,
)

TERMINAL_PUNCTUATION = (".", "!", "?")


def normalize_text(text: str) -> str:
    """Capitalize the first letter and make sure the text ends a sentence."""
    text = text.strip()
    if not text:
        return text
    text = text[0].upper() + text[1:]
    if not text.endswith(TERMINAL_PUNCTUATION):
        text += "."
    return text


class ResponseFinisher(PipelineStage):
    """Polishes the selected reply and decorates it in the persona's voice."""

    def __init__(
        self,
        config: Optional[FinisherConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(config or FinisherConfig(), rng)

    @property
    def stage_type(self) -> str:
        return "finisher"

    def finish(self, text: str, state: ConversationState) -> str:
        """Normalize a reply and apply the trait-gated flourishes.

        Args:
            text: Text of the selected candidate
            state: Conversation state after the personality step

        Returns:
            Final reply text
        """
        vector = state.personality_vector
        reply = normalize_text(text)

        suffix_gates = [
            (
                vector.trait("nostalgia") > self.config.nostalgia_threshold,
                self.config.nostalgia_probability,
                NOSTALGIC_SUFFIXES,
            ),
            (
                vector.trait("wisdom") > self.config.wisdom_threshold,
                self.config.wisdom_probability,
                WISDOM_SUFFIXES,
            ),
            (
                vector.trait("playfulness") > self.config.playfulness_threshold,
                self.config.playfulness_probability,
                PLAYFUL_SUFFIXES,
            ),
        ]
        suffixes: List[str] = []
        for open_gate, probability, phrases in suffix_gates:
            if len(suffixes) >= self.config.max_suffixes:
                break
            if open_gate and self.rng.random() < probability:
                suffixes.append(self.rng.choice(phrases))

        preface = None
        if (
            state.conversational_depth > self.config.depth_threshold
            and self.rng.random() < self.config.preface_probability
        ):
            preface = self.rng.choice(REFLECTIVE_PREFACES)

        parts = [preface] if preface else []
        parts.append(reply)
        parts.extend(suffixes)

        self.logger.debug(
            f"Finished reply: preface={preface is not None}, suffixes={len(suffixes)}"
        )
        return " ".join(parts)
