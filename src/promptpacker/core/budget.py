# src/promptpacker/core/budget.py
from typing import Iterable, List, Tuple

from promptpacker.models import FileCandidate


def select_within_budget(
    candidates: Iterable[FileCandidate], max_total_bytes: int
) -> Tuple[List[FileCandidate], int, List[Tuple[FileCandidate, int]]]:
    """
    Greedily keeps the most relevant files that fit in `max_total_bytes`.

    Only included files with content take part. They are ranked by relevance
    (stable, so ties keep discovery order) and admitted in one pass; a file that
    does not fit the remaining budget is skipped and never reconsidered, while
    smaller files after it can still be admitted.

    Returns (selected, total_bytes, skipped) where skipped pairs each rejected
    file with the budget that was left when it was considered.
    """
    participants = [c for c in candidates if c.included and c.content]
    ranked = sorted(participants, key=lambda c: c.relevance_score or 0.0, reverse=True)

    selected: List[FileCandidate] = []
    skipped: List[Tuple[FileCandidate, int]] = []
    total = 0
    for candidate in ranked:
        if total + candidate.size <= max_total_bytes:
            selected.append(candidate)
            total += candidate.size
        else:
            skipped.append((candidate, max_total_bytes - total))
    return selected, total, skipped
