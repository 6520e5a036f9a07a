"""Degree-of-freedom numbering across all staggered steps."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

import numpy as np

from .dofsync import number_all_steps

__all__ = ["DofSpace"]

_log = logging.getLogger(__name__)


def _as_list(values: int | Iterable[int]) -> list[int]:
    if isinstance(values, (int, np.integer)):
        return [int(values)]
    return [int(v) for v in values]


def _lookup(inputs: Mapping[str, Any], keys: Sequence[str]) -> Any:
    node: Any = inputs
    for key in keys:
        if not isinstance(node, Mapping) or key not in node:
            raise KeyError(f"Required input {'/'.join(keys)} is missing")
        node = node[key]
    return node


class DofSpace:
    """Numbers the degrees of freedom of every staggered step for one rank."""

    def __init__(
        self,
        dof_names: Sequence[str],
        dof_steps: Sequence[int],
        save_folder: str | Path = ".",
    ) -> None:
        self.dof_names = [str(n) for n in dof_names]
        self.dof_steps = [int(s) for s in dof_steps]
        if len(self.dof_names) != len(self.dof_steps):
            raise ValueError("Please specify dof steps for all dofs")
        if not self.dof_names:
            raise ValueError("At least one degree of freedom must be defined")
        if any(s < 0 for s in self.dof_steps):
            raise ValueError("Dof steps must not be negative")
        self.save_folder = Path(save_folder)
        self.rank = 0

        steps = self.max_steps
        self.local_dof_num_range: list[tuple[int, int]] = [(0, 0)] * steps
        self.total_dof_range: list[int] = [0] * steps
        self.dof_numbering: list[list[dict[int, int]]] = [
            [{} for _ in self.dof_names] for _ in range(steps)
        ]
        self._ghost_dofs: list[list[int]] = [[] for _ in range(steps)]
        self._dofs_to_add: list[set[int]] = [set() for _ in self.dof_names]

    @classmethod
    def from_inputs(cls, inputs: Mapping[str, Any]) -> "DofSpace":
        """Build from a nested input mapping (Dofs/DofNames, Dofs/DofStep, Outputs/SaveFolder)."""
        names = _lookup(inputs, ("Dofs", "DofNames"))
        steps = _lookup(inputs, ("Dofs", "DofStep"))
        folder = _lookup(inputs, ("Outputs", "SaveFolder"))
        return cls(names, steps, folder)

    @property
    def n_dofs(self) -> int:
        """Number of distinct dof types."""
        return len(self.dof_names)

    @property
    def max_steps(self) -> int:
        """Number of staggered steps."""
        return max(self.dof_steps) + 1

    def find_dof_type(self, name: str) -> tuple[int, int] | None:
        """Return ``(dof_type, step)`` for ``name``, or None when it is not defined."""
        try:
            index = self.dof_names.index(name)
        except ValueError:
            return None
        return index, self.dof_steps[index]

    def has_dof_type(self, name: str) -> bool:
        """Whether a dof type of this name exists."""
        return self.find_dof_type(name) is not None

    def get_dof_type_step(self, name: str) -> tuple[int, int]:
        """Return ``(dof_type, step)`` for ``name``; raise ValueError if undefined."""
        found = self.find_dof_type(name)
        if found is None:
            raise ValueError(f'Dof of type "{name}" is not defined')
        return found

    def get_dof_types_steps(self, names: Iterable[str]) -> tuple[list[int], list[int]]:
        """Return the dof type indices and steps for several names."""
        pairs = [self.get_dof_type_step(n) for n in names]
        return [p[0] for p in pairs], [p[1] for p in pairs]

    def add_dofs(self, nodes: int | Iterable[int], dof_indices: int | Iterable[int]) -> None:
        """Request the given dof types on the given nodes (duplicates are ignored)."""
        node_list = _as_list(nodes)
        for dof_index in _as_list(dof_indices):
            if not 0 <= dof_index < self.n_dofs:
                raise IndexError(f"Dof index {dof_index} is out of range")
            self._dofs_to_add[dof_index].update(node_list)

    def sync_dofs(self, node_ranges: Sequence[int], rank: int = 0) -> None:
        """Number all requested dofs as seen by ``rank``, given node ownership ranges."""
        n_ranks = len(node_ranges) - 1
        if not 0 <= rank < n_ranks:
            raise ValueError(f"Rank {rank} is outside the {n_ranks} ranks of node_ranges")
        self.rank = rank
        empty = [set() for _ in self.dof_names]
        requests = [self._dofs_to_add if r == rank else empty for r in range(n_ranks)]
        per_step = number_all_steps(requests, self.dof_steps, self.max_steps, node_ranges)
        for step, results in enumerate(per_step):
            mine = results[rank]
            self.local_dof_num_range[step] = mine.local_range
            self.total_dof_range[step] = mine.total
            self.dof_numbering[step] = [dict(m) for m in mine.numbering]
            self._ghost_dofs[step] = list(mine.ghost_dofs)
            _log.info(self.stats_message(step))
            start, stop = mine.local_range
            _log.debug(
                "Local Dofs: %d, Ghost Dofs: %d", stop - start, len(mine.ghost_dofs)
            )

    def stats_message(self, step: int) -> str:
        """Summary line of the dof types and total dof count of one step."""
        message = "Degrees of Freedom Added: "
        for name, dof_step in zip(self.dof_names, self.dof_steps):
            if dof_step == step:
                message += name + ", "
        return message + f"Total amount of DOFs: {self.total_dof_range[step]}"

    def _number(self, node: int, dof_index: int) -> int:
        step = self.dof_steps[dof_index]
        try:
            return self.dof_numbering[step][dof_index][int(node)]
        except KeyError:
            raise KeyError(
                f"Node {node} has no dof of type {self.dof_names[dof_index]}"
            ) from None

    def get_dof_for_nodes(self, nodes: int | Iterable[int], dof_index: int) -> int | list[int]:
        """Dof number(s) of one dof type on a node or on several nodes."""
        if isinstance(nodes, (int, np.integer)):
            return self._number(int(nodes), dof_index)
        return [self._number(n, dof_index) for n in nodes]

    def get_dofs_for_nodes(self, nodes: Iterable[int], dof_indices: Iterable[int]) -> list[int]:
        """Dof numbers for every node, grouped per dof type in the order given."""
        node_list = _as_list(nodes)
        return [self._number(n, d) for d in _as_list(dof_indices) for n in node_list]

    def get_dof_for_nodes_series(
        self, nodes: Iterable[int], dof_indices: Iterable[int]
    ) -> list[int]:
        """Dof numbers for paired ``(node, dof_index)`` entries."""
        node_list = _as_list(nodes)
        index_list = _as_list(dof_indices)
        if len(node_list) != len(index_list):
            raise ValueError("nodes and dof_indices must have the same length")
        return [self._number(n, d) for n, d in zip(node_list, index_list)]

    def ghost_dof_numbers(self, step: int) -> list[int]:
        """Ghost dof numbers of one step."""
        return list(self._ghost_dofs[step])

    def to_dict(self) -> dict[str, Any]:
        """Restartable state of the numbering."""
        return {
            "LocalDofNumRange": [list(r) for r in self.local_dof_num_range],
            "TotalDofRange": list(self.total_dof_range),
            "DofNumbering": [[dict(m) for m in step] for step in self.dof_numbering],
            "GhostDofs": [list(g) for g in self._ghost_dofs],
        }

    def load_dict(self, data: Mapping[str, Any]) -> None:
        """Restore the numbering saved by :meth:`to_dict`."""
        self.local_dof_num_range = [
            (int(r[0]), int(r[1])) for r in data["LocalDofNumRange"]
        ]
        self.total_dof_range = [int(t) for t in data["TotalDofRange"]]
        self.dof_numbering = [
            [{int(k): int(v) for k, v in m.items()} for m in step]
            for step in data["DofNumbering"]
        ]
        self._ghost_dofs = [[int(g) for g in ghosts] for ghosts in data["GhostDofs"]]

    def export(self, path: str | Path | None = None) -> Path:
        """Write ``(node, dof)`` tables per step and dof type to an ``.npz`` file."""
        target = Path(path) if path is not None else self.save_folder / "DofSpace.npz"
        arrays: dict[str, np.ndarray] = {}
        for step, per_dof in enumerate(self.dof_numbering):
            for name, mapping in zip(self.dof_names, per_dof):
                table = np.array(sorted(mapping.items()), dtype=np.int64).reshape(-1, 2)
                arrays[f"Step_{step}/{name}/Core_{self.rank}"] = table
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as handle:
            np.savez(handle, **arrays)
        return target