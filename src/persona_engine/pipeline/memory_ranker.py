"""
Implementation of the memory ranker stage.
"""

import asyncio
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..config.settings import RankerConfig
from ..core.errors import StoreUnavailable
from ..core.models import Analysis, ConversationState, MemoryFragment, utcnow
from ..core.stage import PipelineStage
from ..data.lexicons import STOPWORDS
from ..store.base import MemoryQuery, MemoryStore, call_store
from .analyzer import tokenize

ASSOCIATION_KEYWORDS = 8


def depth_bucket(depth: float, config: RankerConfig) -> str:
    """Map a conversational depth onto its memory tag bucket."""
    if depth < config.shallow_threshold:
        return "shallow"
    if depth < config.deep_threshold:
        return "medium"
    return "deep"


class MemoryRanker(PipelineStage):
    """Retrieves and ranks the memory fragments relevant to a turn."""

    def __init__(
        self,
        store: MemoryStore,
        config: Optional[RankerConfig] = None,
        store_timeout: float = 2.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize the memory ranker.

        Args:
            store: Memory store to query
            config: Optional ranker configuration
            store_timeout: Seconds allowed for each store query
            clock: Source of the current time, used for recency
        """
        super().__init__(config or RankerConfig())
        self.store = store
        self.store_timeout = store_timeout
        self.clock = clock

    @property
    def stage_type(self) -> str:
        return "memory_ranker"

    async def retrieve(
        self, analysis: Analysis, state: ConversationState
    ) -> List[MemoryFragment]:
        """Pool fragments from every strategy and return the best ranked.

        Args:
            analysis: Analysis of the current message
            state: Conversation state, for its id and depth

        Returns:
            At most ``top_n`` fragments, best first, without duplicate ids
        """
        queries = self._strategy_queries(analysis, state)
        names = list(queries)
        results = await asyncio.gather(
            *(self._run_strategy(name, queries[name]) for name in names)
        )
        found: Dict[str, List[MemoryFragment]] = dict(zip(names, results))

        seeds = [fragments[0] for fragments in results if fragments]
        keywords = self._association_keywords(seeds)
        if keywords:
            found["association"] = await self._run_strategy(
                "association",
                MemoryQuery(
                    conversation_id=state.conversation_id,
                    content_any=keywords,
                    order_by="weight",
                    limit=self.config.per_strategy_limit,
                ),
            )

        pool: List[MemoryFragment] = []
        seen = set()
        for fragments in found.values():
            for fragment in fragments:
                if fragment.id not in seen:
                    seen.add(fragment.id)
                    pool.append(fragment)

        ranked = self.rank(pool, analysis)
        self.logger.info(
            f"Memories ranked: pool={len(pool)}, returned={len(ranked)}"
        )
        return self.mark_accessed([fragment for _, fragment in ranked])

    def mark_accessed(self, fragments: List[MemoryFragment]) -> List[MemoryFragment]:
        """Copies of the fragments with one more access recorded at the current time.

        The store is not written; callers persist the copies when they keep
        the turn.
        """
        now = self.clock()
        return [
            fragment.model_copy(
                update={
                    "accessed_count": fragment.accessed_count + 1,
                    "last_accessed_at": now,
                }
            )
            for fragment in fragments
        ]

    def rank(
        self, pool: List[MemoryFragment], analysis: Analysis
    ) -> List[Tuple[float, MemoryFragment]]:
        """Score a pool and keep the top entries, ties in pool order."""
        now = self.clock()
        scored = [(self.score_fragment(f, analysis, now), f) for f in pool]
        # sorted() is stable, so equal scores keep discovery order
        scored = sorted(scored, key=lambda item: item[0], reverse=True)
        return scored[: self.config.top_n]

    def score_fragment(
        self, fragment: MemoryFragment, analysis: Analysis, now: datetime
    ) -> float:
        """Weighted blend of weight, recency, access frequency and relevance."""
        days = max(0.0, (now - fragment.last_accessed_at).total_seconds() / 86400)
        recency = max(0.0, 1.0 - days / self.config.recency_window_days)
        frequency = min(1.0, fragment.accessed_count / self.config.access_saturation)

        return (
            fragment.weight * self.config.weight_factor
            + recency * self.config.recency_factor
            + frequency * self.config.frequency_factor
            + self._relevance(fragment, analysis) * self.config.relevance_factor
        )

    def _relevance(self, fragment: MemoryFragment, analysis: Analysis) -> float:
        if fragment.tags & set(analysis.topics):
            return 1.0
        if analysis.emotion.primary in fragment.tags:
            return 0.5
        return 0.0

    def _strategy_queries(
        self, analysis: Analysis, state: ConversationState
    ) -> Dict[str, Optional[MemoryQuery]]:
        cid = state.conversation_id
        limit = self.config.per_strategy_limit
        emotions = [
            e for e in [analysis.emotion.primary, *analysis.emotion.secondary]
            if e != "neutral"
        ]

        return {
            "topic": MemoryQuery(
                conversation_id=cid,
                tags_any=analysis.topics,
                order_by="weight",
                limit=limit,
            ),
            "emotion": MemoryQuery(
                conversation_id=cid,
                tags_any=emotions,
                content_any=emotions,
                order_by="weight",
                limit=limit,
            )
            if emotions
            else None,
            "depth": MemoryQuery(
                conversation_id=cid,
                tags_any=[depth_bucket(state.conversational_depth, self.config)],
                order_by="weight",
                limit=limit,
            ),
            "recent": MemoryQuery(
                conversation_id=cid, order_by="last_accessed", limit=limit
            ),
        }

    async def _run_strategy(
        self, name: str, query: Optional[MemoryQuery]
    ) -> List[MemoryFragment]:
        if query is None:
            return []
        try:
            fragments = await call_store(
                f"query_memory_fragments[{name}]",
                self.store.query_memory_fragments(query),
                self.store_timeout,
            )
        except StoreUnavailable as exc:
            self.logger.warning(f"Retrieval strategy {name} degraded: {exc}")
            return []
        self.logger.debug(f"Strategy {name} found {len(fragments)} fragments")
        return fragments

    def _association_keywords(self, seeds: List[MemoryFragment]) -> List[str]:
        keywords: List[str] = []
        for fragment in seeds:
            for token in tokenize(fragment.content):
                if len(token) > 4 and token not in STOPWORDS and token not in keywords:
                    keywords.append(token)
        return keywords[:ASSOCIATION_KEYWORDS]
