"""
Implementation of the candidate generator stage.
"""

import random
from statistics import mean
from typing import Dict, List, Optional

from ..config.settings import GeneratorConfig
from ..core.models import (
    Analysis,
    ConversationState,
    MemoryFragment,
    ResponseCandidate,
    clamp,
)
from ..core.stage import PipelineStage
from ..data.lexicons import STOPWORDS
from ..data.persona import (
    GENERIC_TEMPLATES,
    GRAMMAR_RULES,
    KNOWLEDGE,
    KNOWLEDGE_INTROS,
    MEMORY_CONNECTORS,
    MEMORY_INTROS,
    SENTIMENT_WORDS,
    TEMPLATES,
    GrammarRule,
    KnowledgeItem,
    Template,
)
from .analyzer import extract_topics, tokenize, topic_similarity


def user_focus(analysis: Analysis) -> str:
    """Longest content word of the message; the first one wins ties."""
    content_words = [t for t in analysis.tokens if t not in STOPWORDS]
    if not content_words:
        return "that"
    return max(content_words, key=len)


def estimate_complexity(text: str) -> float:
    tokens = tokenize(text)
    if not tokens:
        return 0.0
    avg_length = mean(len(token) for token in tokens)
    return clamp(0.5 * min(1.0, avg_length / 10) + 0.5 * min(1.0, len(tokens) / 40))


class CandidateGenerator(PipelineStage):
    """Builds the pool of reply candidates from four independent sources.

    Template filling, memory transformation, grammar slot filling and
    knowledge lookup always all run; their outputs are concatenated in that
    order.
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        rng: Optional[random.Random] = None,
        templates: Optional[List[Template]] = None,
        generic_templates: Optional[List[Template]] = None,
        grammar_rules: Optional[List[GrammarRule]] = None,
        knowledge: Optional[Dict[str, List[KnowledgeItem]]] = None,
    ):
        super().__init__(config or GeneratorConfig(), rng)
        self.templates = TEMPLATES if templates is None else templates
        self.generic_templates = (
            GENERIC_TEMPLATES if generic_templates is None else generic_templates
        )
        self.grammar_rules = GRAMMAR_RULES if grammar_rules is None else grammar_rules
        self.knowledge = KNOWLEDGE if knowledge is None else knowledge

    @property
    def stage_type(self) -> str:
        return "candidate_generator"

    def generate(
        self,
        analysis: Analysis,
        state: ConversationState,
        memories: List[MemoryFragment],
    ) -> List[ResponseCandidate]:
        """Produce every candidate for the current turn.

        Args:
            analysis: Analysis of the current message
            state: Conversation state; its latest user message anchors coherence
            memories: Ranked memory fragments, best first

        Returns:
            Candidates in generation order
        """
        last_user = state.last_user_message()
        reference_topics = (
            extract_topics(last_user.content) if last_user else analysis.topics
        )

        candidates: List[ResponseCandidate] = []
        candidates.extend(self._from_templates(analysis, reference_topics))
        candidates.extend(self._from_memories(analysis, memories, reference_topics))
        candidates.extend(self._from_grammar(analysis, memories, reference_topics))
        candidates.extend(self._from_knowledge(analysis, reference_topics))

        self.logger.info(
            f"Candidates generated: total={len(candidates)}, "
            f"sources={sorted({c.source for c in candidates})}"
        )
        return candidates

    def _candidate(
        self,
        text: str,
        confidence: float,
        source: str,
        provenance: List[str],
        reference_topics: List[str],
    ) -> ResponseCandidate:
        return ResponseCandidate(
            text=text,
            confidence=confidence,
            source=source,
            complexity=estimate_complexity(text),
            coherence_score=topic_similarity(extract_topics(text), reference_topics),
            provenance=provenance,
        )

    def _from_templates(
        self, analysis: Analysis, reference_topics: List[str]
    ) -> List[ResponseCandidate]:
        topics = set(analysis.topics)
        matched = [
            t
            for t in self.templates
            if topics & set(t.topics)
            or analysis.sentiment.label in t.sentiments
            or analysis.emotion.primary in t.emotions
        ]
        for generic in self.generic_templates:
            if len(matched) >= self.config.min_templates:
                break
            if generic not in matched:
                matched.append(generic)

        values = {
            "topic": analysis.primary_topic,
            "sentiment": SENTIMENT_WORDS[analysis.sentiment.label],
            "emotion": analysis.emotion.primary
            if analysis.emotion.primary != "neutral"
            else "quiet",
            "userFocus": user_focus(analysis),
        }
        return [
            self._candidate(
                template.text.format(**values),
                template.base_confidence * self._template_fitness(template, analysis),
                "template",
                [f"template:{template.id}"],
                reference_topics,
            )
            for template in matched
        ]

    def _template_fitness(self, template: Template, analysis: Analysis) -> float:
        sentiment_match = 1.0 if analysis.sentiment.label in template.sentiments else 0.5
        complexity_fit = 1.0 - abs(template.complexity - analysis.complexity)
        topic_overlap = len(set(template.topics) & set(analysis.topics)) / len(
            analysis.topics
        )
        return clamp(
            self.config.sentiment_fitness_weight * sentiment_match
            + self.config.complexity_fitness_weight * complexity_fit
            + self.config.topic_fitness_weight * topic_overlap
        )

    def _from_memories(
        self,
        analysis: Analysis,
        memories: List[MemoryFragment],
        reference_topics: List[str],
    ) -> List[ResponseCandidate]:
        candidates = []
        for fragment in memories[: self.config.memory_transform_count]:
            intro = self.rng.choice(MEMORY_INTROS[fragment.type])
            connector = self.rng.choice(MEMORY_CONNECTORS)
            text = f"{intro} {fragment.content} {connector} {analysis.primary_topic}"
            candidates.append(
                self._candidate(
                    text,
                    fragment.weight * self.config.memory_confidence_factor,
                    "memory",
                    [fragment.id],
                    reference_topics,
                )
            )
        return candidates

    def _from_grammar(
        self,
        analysis: Analysis,
        memories: List[MemoryFragment],
        reference_topics: List[str],
    ) -> List[ResponseCandidate]:
        topics = set(analysis.topics)
        candidates = []
        for rule in self.grammar_rules:
            if not topics & set(rule.topics):
                continue
            related = [m for m in memories if m.tags & set(rule.topics)]
            for _ in range(self.config.grammar_instantiations):
                parts, provenance = [], [f"grammar:{rule.id}"]
                for slot in rule.slots:
                    if slot == "memory" and related:
                        fragment = self.rng.choice(related)
                        parts.append(fragment.content)
                        provenance.append(fragment.id)
                    else:
                        filler = self.rng.choice(rule.fillers[slot])
                        parts.append(filler.format(topic=analysis.primary_topic))
                candidates.append(
                    self._candidate(
                        " ".join(parts),
                        rule.base_confidence * self.config.grammar_confidence_factor,
                        "grammar",
                        provenance,
                        reference_topics,
                    )
                )
        return candidates

    def _from_knowledge(
        self, analysis: Analysis, reference_topics: List[str]
    ) -> List[ResponseCandidate]:
        candidates = []
        for topic in analysis.topics:
            for item in self.knowledge.get(topic, []):
                intro = self.rng.choice(KNOWLEDGE_INTROS)
                candidates.append(
                    self._candidate(
                        f"{intro} {item.text}",
                        self.config.knowledge_confidence,
                        "knowledge",
                        [item.id],
                        reference_topics,
                    )
                )
        return candidates
