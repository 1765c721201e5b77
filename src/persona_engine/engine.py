"""
Turn engine and conversation service.

``PersonaEngine`` runs the pipeline for one message against a conversation
state and returns everything the turn produced. ``ConversationService``
wraps it with the store I/O: per-conversation locking, lazy creation,
persistence and background memory writes.
"""

import asyncio
import random
import re
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Set

from .config.settings import StoreConfig, SystemConfig, default_config
from .core.errors import ConfigurationError, StoreUnavailable
from .core.models import (
    Analysis,
    ConversationState,
    FragmentType,
    MemoryFragment,
    Message,
    ResponseCandidate,
    Role,
    TurnMetadata,
    TurnOutcome,
    clamp,
    derive_conversation_id,
    utcnow,
)
from .data.persona import SEED_MEMORIES
from .pipeline.analyzer import FeatureAnalyzer
from .pipeline.candidate_generator import CandidateGenerator
from .pipeline.candidate_selector import CandidateSelector
from .pipeline.finisher import ResponseFinisher, normalize_text
from .pipeline.memory_ranker import MemoryRanker, depth_bucket
from .pipeline.personality import PersonalityStateMachine, generate_personality_vector
from .store.base import MemoryStore, call_store
from .store.json_file import JsonFileStore
from .store.memory import InMemoryStore
from .utils.logging import StageLogger

FRAGMENT_CUES = {
    FragmentType.PREFERENCE: ["i love", "i like", "i enjoy", "i prefer"],
    FragmentType.FACT: ["my name is", "i am", "i have", "i work"],
}
FRAGMENT_WEIGHTS = {
    FragmentType.PREFERENCE: 0.7,
    FragmentType.FACT: 0.6,
    FragmentType.EMOTIONAL_STATE: 0.5,
    FragmentType.CONCEPT: 0.6,
}
EMOTIONAL_INTENSITY_FLOOR = 0.1


class PersonaEngine:
    """Runs the response pipeline for a single turn."""

    def __init__(
        self,
        store: MemoryStore,
        config: Optional[SystemConfig] = None,
        rng: Optional[random.Random] = None,
        clock=utcnow,
    ):
        """Initialize the engine and its stages.

        Args:
            store: Memory store used for retrieval
            config: Optional system configuration
            rng: Random source shared by every stage that draws
            clock: Source of the current time
        """
        self.config = config or default_config
        self.rng = rng or random.Random(self.config.random_seed)
        self.store = store
        self.clock = clock
        self.logger = StageLogger("engine", self.config.log_level)

        self.analyzer = FeatureAnalyzer(self.config.analyzer)
        self.ranker = MemoryRanker(
            store, self.config.ranker, self.config.store.timeout_seconds, clock
        )
        self.generator = CandidateGenerator(self.config.generator, self.rng)
        self.selector = CandidateSelector(self.config.selector)
        self.personality = PersonalityStateMachine(self.config.personality, self.rng)
        self.finisher = ResponseFinisher(self.config.finisher, self.rng)

        for stage in (
            self.analyzer,
            self.ranker,
            self.generator,
            self.selector,
            self.personality,
            self.finisher,
        ):
            stage.logger.set_level(self.config.log_level)

    async def process_turn(self, text: str, state: ConversationState) -> TurnOutcome:
        """Produce the reply to a message.

        The given state is never mutated; the updated state is part of the
        outcome.

        Args:
            text: User message
            state: Conversation state before the turn

        Returns:
            Reply, metadata, updated state and new memory fragments
        """
        state = state.model_copy(deep=True)
        now = self.clock()

        analysis = self.analyzer.analyze(text)
        state.remember(
            Message(role=Role.USER, content=text, created_at=now, analysis=analysis)
        )
        self.personality.advance(state)

        memories = await self.ranker.retrieve(analysis, state)
        candidates = self.generator.generate(analysis, state, memories)
        candidate = self.selector.select(candidates, analysis, state)
        novelty = self.selector.novelty(candidate, state)
        response = self.finisher.finish(candidate.text, state)

        state.interaction_count += 1
        state.conversational_depth = (
            state.conversational_depth
            + analysis.complexity * self.config.conversation.depth_growth_rate
        )
        state.last_interaction_timestamp = now
        state.remember(Message(role=Role.AGENT, content=response, created_at=now))

        metadata = self._metadata(state, analysis, candidate, memories, novelty, now)
        new_fragments = self.extract_fragments(text, analysis, state)

        self.logger.info(
            f"Turn {state.interaction_count} done for {state.conversation_id}: "
            f"origin={candidate.source}, fragments={len(new_fragments)}"
        )
        return TurnOutcome(
            response=response,
            metadata=metadata,
            analysis=analysis,
            candidate=candidate,
            state=state,
            memories=memories,
            new_fragments=new_fragments,
        )

    def _metadata(
        self,
        state: ConversationState,
        analysis: Analysis,
        candidate: ResponseCandidate,
        memories: List[MemoryFragment],
        novelty: float,
        now,
    ) -> TurnMetadata:
        vector = state.personality_vector
        memory_ids = {m.id for m in memories}

        if normalize_text(candidate.text).endswith("?"):
            response_type = "question"
        elif candidate.source == "memory":
            response_type = "story"
        else:
            response_type = "reply"

        return TurnMetadata(
            conversation_id=state.conversation_id,
            topic=analysis.primary_topic,
            sentiment=analysis.sentiment.label,
            emotional_state=vector.current_emotional_state.value,
            continuity_score=candidate.coherence_score,
            response_type=response_type,
            timestamp=now,
            memory_references=[p for p in candidate.provenance if p in memory_ids],
            conversation_depth=state.conversational_depth,
            interest_level=clamp(0.5 * vector.trait("curiosity") + 0.5 * novelty),
            personality_vector=vector.as_metadata(),
            generative_confidence=candidate.confidence,
            response_origin=candidate.source,
            knowledge_sources=[
                p for p in candidate.provenance if p.startswith("knowledge:")
            ],
        )

    def extract_fragments(
        self, text: str, analysis: Analysis, state: ConversationState
    ) -> List[MemoryFragment]:
        """Turn a user message into memory fragments worth keeping.

        Args:
            text: User message
            analysis: Analysis of the message
            state: Conversation the fragments belong to

        Returns:
            Zero or more fragments, at most one per type
        """
        lowered = text.lower()
        tags = set(analysis.topics)
        tags.add(depth_bucket(state.conversational_depth, self.config.ranker))
        if analysis.emotion.primary != "neutral":
            tags.add(analysis.emotion.primary)

        found: List[FragmentType] = [
            fragment_type
            for fragment_type, cues in FRAGMENT_CUES.items()
            if any(re.search(rf"\b{re.escape(cue)}\b", lowered) for cue in cues)
        ]
        if analysis.emotion.intensity >= EMOTIONAL_INTENSITY_FLOOR:
            found.append(FragmentType.EMOTIONAL_STATE)
        if analysis.abstraction_level == "high":
            found.append(FragmentType.CONCEPT)

        fragments = []
        for fragment_type in found:
            weight = FRAGMENT_WEIGHTS[fragment_type]
            if fragment_type == FragmentType.EMOTIONAL_STATE:
                weight += 0.5 * analysis.emotion.intensity
            fragments.append(
                MemoryFragment(
                    conversation_id=state.conversation_id,
                    type=fragment_type,
                    content=text.strip(),
                    weight=weight,
                    tags=set(tags),
                )
            )
        return fragments


class ConversationService:
    """Loads, locks and persists conversations around the engine."""

    def __init__(
        self,
        engine: PersonaEngine,
        store: Optional[MemoryStore] = None,
        config: Optional[SystemConfig] = None,
    ):
        self.engine = engine
        self.store = store or engine.store
        self.config = config or engine.config
        self.timeout = self.config.store.timeout_seconds
        self.logger = StageLogger("service", self.config.log_level)
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._pending: Set[asyncio.Task] = set()

    @asynccontextmanager
    async def _conversation_lock(self, conversation_id: str):
        """Hold the lock of one conversation.

        A lock lives only while some request holds or waits for it.
        """
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = self._locks[conversation_id] = asyncio.Lock()
        self._lock_users[conversation_id] = self._lock_users.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[conversation_id] -= 1
            if not self._lock_users[conversation_id]:
                del self._lock_users[conversation_id]
                del self._locks[conversation_id]

    def new_state(self, conversation_id: str, user_id: Optional[str]) -> ConversationState:
        """Fresh state with a newly drawn personality vector."""
        return ConversationState(
            conversation_id=conversation_id,
            user_id=user_id,
            personality_vector=generate_personality_vector(
                self.config.personality, self.engine.rng
            ),
        )

    async def respond(self, user_id: str, chat_id: str, message: str) -> TurnOutcome:
        """Run one turn of a conversation, creating it on first contact.

        Args:
            user_id: Stable user identifier
            chat_id: Chat identifier, unique per user
            message: User message

        Returns:
            Outcome of the turn
        """
        conversation_id = derive_conversation_id(user_id, chat_id)

        async with self._conversation_lock(conversation_id):
            try:
                state = await call_store(
                    "get_conversation",
                    self.store.get_conversation(conversation_id),
                    self.timeout,
                )
            except StoreUnavailable as exc:
                self.logger.warning(
                    f"Continuing {conversation_id} with a fresh state: {exc}"
                )
                # The stored state may still be intact, so nothing is written back
                return await self.engine.process_turn(
                    message, self.new_state(conversation_id, user_id)
                )

            if state is None:
                state = self.new_state(conversation_id, user_id)
                await self._create(state)
            elif not state.short_term_memory:
                await self._hydrate(state)

            outcome = await self.engine.process_turn(message, state)
            await self._persist(outcome, message)
            # Retrieved fragments carry their new access count back to the store
            self._schedule_fragments([*outcome.memories, *outcome.new_fragments])

        return outcome

    async def forget(self, user_id: str, chat_id: str) -> bool:
        """Delete a conversation together with its messages and fragments."""
        conversation_id = derive_conversation_id(user_id, chat_id)
        async with self._conversation_lock(conversation_id):
            # Pending fragment writes would otherwise recreate deleted fragments
            await self.drain()
            return await call_store(
                "delete_conversation_and_messages",
                self.store.delete_conversation_and_messages(conversation_id),
                self.timeout,
            )

    async def drain(self) -> None:
        """Wait for every scheduled background write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _create(self, state: ConversationState) -> None:
        try:
            await call_store(
                "create_conversation", self.store.create_conversation(state), self.timeout
            )
        except StoreUnavailable as exc:
            self.logger.warning(f"Could not create {state.conversation_id}: {exc}")
            return

        dropped = 0
        for fragment_type, content, weight, tags in SEED_MEMORIES:
            try:
                await call_store(
                    "insert_memory_fragment",
                    self.store.insert_memory_fragment(
                        MemoryFragment(
                            conversation_id=state.conversation_id,
                            type=fragment_type,
                            content=content,
                            weight=weight,
                            tags=set(tags),
                        )
                    ),
                    self.timeout,
                )
            except StoreUnavailable as exc:
                dropped += 1
                self.logger.warning(f"Dropped seed memory {content[:40]!r}: {exc}")
        self.logger.info(
            f"Created conversation {state.conversation_id} "
            f"with {len(SEED_MEMORIES) - dropped}/{len(SEED_MEMORIES)} seed memories"
        )

    async def _hydrate(self, state: ConversationState) -> None:
        try:
            messages = await call_store(
                "list_recent_messages",
                self.store.list_recent_messages(
                    state.conversation_id, self.config.conversation.history_limit
                ),
                self.timeout,
            )
        except StoreUnavailable as exc:
            self.logger.warning(f"History unavailable for {state.conversation_id}: {exc}")
            return
        state.short_term_memory = messages

    async def _persist(self, outcome: TurnOutcome, message: str) -> None:
        conversation_id = outcome.state.conversation_id
        writes = [
            (
                "update_conversation_state",
                self.store.update_conversation_state(conversation_id, outcome.state),
            ),
            (
                "append_message[user]",
                self.store.append_message(
                    conversation_id,
                    Role.USER,
                    message,
                    {"analysis": outcome.analysis.model_dump(mode="json")},
                ),
            ),
            (
                "append_message[agent]",
                self.store.append_message(
                    conversation_id,
                    Role.AGENT,
                    outcome.response,
                    self._message_meta(outcome),
                ),
            ),
        ]
        for operation, pending in writes:
            try:
                await call_store(operation, pending, self.timeout)
            except StoreUnavailable as exc:
                self.logger.warning(f"Persisting {conversation_id} degraded: {exc}")

    def _message_meta(self, outcome: TurnOutcome) -> Dict[str, Any]:
        return {
            "metadata": outcome.metadata.model_dump(by_alias=True, mode="json"),
            "provenance": outcome.candidate.provenance,
        }

    def _schedule_fragments(self, fragments: List[MemoryFragment]) -> None:
        for fragment in fragments:
            task = asyncio.create_task(self._insert_fragment(fragment))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _insert_fragment(self, fragment: MemoryFragment) -> None:
        try:
            await call_store(
                "insert_memory_fragment",
                self.store.insert_memory_fragment(fragment),
                self.timeout,
            )
        except StoreUnavailable as exc:
            self.logger.warning(f"Dropped memory fragment {fragment.id}: {exc}")


def build_store(config: StoreConfig) -> MemoryStore:
    """Create the store backend named by the configuration."""
    if config.backend == "memory":
        return InMemoryStore()
    if config.backend == "json":
        return JsonFileStore(config.path or "conversations")
    raise ConfigurationError(f"Unknown store backend: {config.backend}")


def build_service(config: Optional[SystemConfig] = None) -> ConversationService:
    """Assemble a service, its engine and its store from configuration."""
    config = config or default_config
    store = build_store(config.store)
    engine = PersonaEngine(store, config)
    return ConversationService(engine, store, config)
