"""Distributed degree-of-freedom numbering, computed for every rank at once.

Each rank owns a contiguous block of global node numbers, given by
``node_ranges`` (``len(node_ranges) == n_ranks + 1``). Every rank lists, per
dof type, the nodes on which it needs that dof. Nodes owned by another rank
are first forwarded to their owner so that all requested dofs exist. Then, per
staggered step, each rank numbers the dofs it owns (dof type first, then node
number ascending) in a contiguous global block following the blocks of
lower-ranked ranks. Finally, dofs on nodes owned elsewhere are resolved as
ghosts from the owning rank.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

__all__ = ["RankNumbering", "owner_of", "number_step", "number_all_steps"]


@dataclass
class RankNumbering:
    """Dof numbering of one staggered step as seen by one rank."""

    rank: int
    local_range: tuple[int, int]
    total: int
    numbering: list[dict[int, int]] = field(default_factory=list)
    ghost_dofs: list[int] = field(default_factory=list)

    @property
    def local_count(self) -> int:
        """Number of dofs owned by this rank."""
        start, stop = self.local_range
        return stop - start

    def dof(self, dof_index: int, node: int) -> int:
        """Global dof number of ``node`` for dof type ``dof_index``."""
        try:
            return self.numbering[dof_index][node]
        except (IndexError, KeyError):
            raise KeyError(
                f"Node {node} has no dof of type {dof_index} on rank {self.rank}"
            ) from None


def _check_ranges(node_ranges: Sequence[int]) -> list[int]:
    ranges = [int(r) for r in node_ranges]
    if len(ranges) < 2:
        raise ValueError("node_ranges needs at least two entries (one rank)")
    return ranges


def owner_of(node: int, node_ranges: Sequence[int]) -> int:
    """Rank owning ``node``: the last rank whose range starts at or below it.

    Nodes below the first range start belong to rank 0, nodes past the end to
    the last rank.
    """
    ranges = _check_ranges(node_ranges)
    starts = ranges[:-1]
    return max(bisect_right(starts, node) - 1, 0)


def _normalise(
    dofs_to_add: Sequence[Sequence[Iterable[int]]],
    n_dofs: int,
    n_ranks: int,
) -> list[list[set[int]]]:
    if len(dofs_to_add) != n_ranks:
        raise ValueError(
            f"Expected dof requests for {n_ranks} ranks, got {len(dofs_to_add)}"
        )
    per_rank = []
    for rank, requests in enumerate(dofs_to_add):
        if len(requests) != n_dofs:
            raise ValueError(
                f"Rank {rank} lists {len(requests)} dof types, expected {n_dofs}"
            )
        per_rank.append([{int(n) for n in nodes} for nodes in requests])
    return per_rank


def _merge_requests(per_rank: list[list[set[int]]], ranges: list[int]) -> None:
    """Forward every requested dof on a foreign node to the rank owning it."""
    forwarded = []
    for rank, requests in enumerate(per_rank):
        for dof_index, nodes in enumerate(requests):
            for node in nodes:
                owner = owner_of(node, ranges)
                if owner != rank:
                    forwarded.append((owner, dof_index, node))
    for owner, dof_index, node in forwarded:
        per_rank[owner][dof_index].add(node)


def _number_merged(
    per_rank: list[list[set[int]]],
    dof_steps: Sequence[int],
    step: int,
    ranges: list[int],
) -> list[RankNumbering]:
    n_ranks = len(ranges) - 1
    active = [d for d, s in enumerate(dof_steps) if s == step]

    owned = [
        {d: sorted(n for n in requests[d] if owner_of(n, ranges) == rank) for d in active}
        for rank, requests in enumerate(per_rank)
    ]
    counts = [sum(len(nodes) for nodes in own.values()) for own in owned]
    total = sum(counts)

    results = []
    start = 0
    for rank in range(n_ranks):
        numbering: list[dict[int, int]] = [{} for _ in dof_steps]
        counter = start
        for d in active:
            for node in owned[rank][d]:
                numbering[d][node] = counter
                counter += 1
        results.append(
            RankNumbering(
                rank=rank,
                local_range=(start, start + counts[rank]),
                total=total,
                numbering=numbering,
            )
        )
        start += counts[rank]

    owned_numbers = [[dict(m) for m in res.numbering] for res in results]

    for rank, requests in enumerate(per_rank):
        by_target: dict[int, list[tuple[int, int]]] = {}
        for d in active:
            for node in sorted(requests[d]):
                target = owner_of(node, ranges)
                if target != rank:
                    by_target.setdefault(target, []).append((d, node))
        result = results[rank]
        for target in sorted(by_target):
            for d, node in by_target[target]:
                number = owned_numbers[target][d][node]
                result.numbering[d][node] = number
                result.ghost_dofs.append(number)
    return results


def number_step(
    dofs_to_add: Sequence[Sequence[Iterable[int]]],
    dof_steps: Sequence[int],
    step: int,
    node_ranges: Sequence[int],
) -> list[RankNumbering]:
    """Number the dofs of one staggered step; one result per rank.

    ``dofs_to_add[rank][dof_index]`` holds the nodes on which ``rank`` needs
    dof type ``dof_index``; ``dof_steps[dof_index]`` is the step that type is
    resolved in.
    """
    ranges = _check_ranges(node_ranges)
    per_rank = _normalise(dofs_to_add, len(dof_steps), len(ranges) - 1)
    _merge_requests(per_rank, ranges)
    return _number_merged(per_rank, dof_steps, step, ranges)


def number_all_steps(
    dofs_to_add: Sequence[Sequence[Iterable[int]]],
    dof_steps: Sequence[int],
    max_steps: int,
    node_ranges: Sequence[int],
) -> list[list[RankNumbering]]:
    """Number every staggered step; indexed as ``result[step][rank]``."""
    if max_steps < 0:
        raise ValueError("max_steps must not be negative")
    ranges = _check_ranges(node_ranges)
    per_rank = _normalise(dofs_to_add, len(dof_steps), len(ranges) - 1)
    _merge_requests(per_rank, ranges)
    return [_number_merged(per_rank, dof_steps, step, ranges) for step in range(max_steps)]