# backend/app/services/aggregator.py
"""
Fact / Summary Aggregator

Merges per-chunk results into one conversation-level result:
1. Per-speaker facts concatenated in chunk order, duplicates dropped (first occurrence wins)
2. Summaries combined into a "Part i" composite when there is more than one chunk
3. Transcript turns concatenated chunk by chunk
"""
from dataclasses import dataclass, field
from typing import Iterable, List

from .asr_base import ChunkResult, ChunkTurn

FALLBACK_SUMMARY = "Conversation imported from mobile app."
COMBINED_SUMMARY_HEADER = "Combined conversation summary:"


@dataclass
class AggregatedChunks:
    s1_facts: List[str] = field(default_factory=list)
    s2_facts: List[str] = field(default_factory=list)
    summary: str = FALLBACK_SUMMARY
    transcript: List[ChunkTurn] = field(default_factory=list)


def dedupe_preserving_order(items: Iterable[str]) -> List[str]:
    """
    Drop repeated entries, keeping the first occurrence in place
    """
    seen = set()
    out = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


def combine_summaries(summaries: List[str]) -> str:
    """
    0 summaries -> fallback text, 1 -> verbatim, 2+ -> header plus one "Part i:" line per chunk
    """
    if not summaries:
        return FALLBACK_SUMMARY
    if len(summaries) == 1:
        return summaries[0]
    parts = "\n\n".join(f"Part {i}: {s}" for i, s in enumerate(summaries, start=1))
    return f"{COMBINED_SUMMARY_HEADER}\n\n{parts}"


def aggregate_chunks(results: List[ChunkResult]) -> AggregatedChunks:
    s1, s2, summaries, transcript = [], [], [], []
    for result in results:
        s1.extend(result.s1_facts)
        s2.extend(result.s2_facts)
        summaries.append(result.summary)
        transcript.extend(result.transcript)

    return AggregatedChunks(
        s1_facts=dedupe_preserving_order(s1),
        s2_facts=dedupe_preserving_order(s2),
        summary=combine_summaries(summaries),
        transcript=transcript,
    )
