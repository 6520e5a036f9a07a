"""Nodal constraints: bookkeeping and the reorder matrices used to apply them."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
from scipy import sparse

from .dofspace import DofSpace

__all__ = ["ConstraintSystem", "Constrainer"]


@dataclass(frozen=True)
class ConstraintSystem:
    """Assembled constraint structures of one staggered step.

    Rows of both matrices are local dof positions (global dof minus the start
    of the local range). ``uncon_mat`` maps the reduced (unconstrained) vector
    onto the full vector; ``con_mat`` maps the constrained values onto it.
    ``con_values`` holds, per constrained dof in ascending dof order, the
    increment still needed to reach the prescribed value.
    """

    con_mat: sparse.csr_matrix
    uncon_mat: sparse.csr_matrix
    constrained_dofs: tuple[int, ...]
    con_values: np.ndarray
    local_range: tuple[int, int]
    version: int

    @property
    def constrained_size(self) -> int:
        """Size of the reduced problem (number of unconstrained local dofs)."""
        return self.uncon_mat.shape[1]

    def expand(
        self,
        free_values: Sequence[float],
        constrained_values: Sequence[float] | None = None,
    ) -> np.ndarray:
        """Combine reduced values and constrained values into a full local vector."""
        free = np.asarray(free_values, dtype=float)
        if free.shape != (self.constrained_size,):
            raise ValueError(
                f"Expected {self.constrained_size} free values, got {free.shape}"
            )
        fixed = (
            self.con_values
            if constrained_values is None
            else np.asarray(constrained_values, dtype=float)
        )
        return self.uncon_mat @ free + self.con_mat @ fixed


@dataclass(frozen=True)
class _Structure:
    con_mat: sparse.csr_matrix
    uncon_mat: sparse.csr_matrix
    dofs: tuple[int, ...]
    local_range: tuple[int, int]


class Constrainer:
    """Collects constrained dofs per staggered step and assembles reorder matrices."""

    def __init__(self, dofspace: DofSpace) -> None:
        self.dofspace = dofspace
        steps = dofspace.max_steps
        self.constraints: list[dict[int, float]] = [{} for _ in range(steps)]
        self.dofs_changed: list[bool] = [True] * steps
        self.dof_version: list[int] = [0] * steps
        self._structure: list[_Structure | None] = [None] * steps

    def set_zero(self, step: int) -> None:
        """Remove all constraints of one step."""
        self.constraints[step].clear()

    def add_constraint(self, step: int, dofs: int | Iterable[int], value: float) -> None:
        """Constrain one or several dofs to ``value``.

        A dof constrained twice to the same value is accepted; to a different
        value it raises ValueError.
        """
        dof_list = [int(dofs)] if isinstance(dofs, (int, np.integer)) else [int(d) for d in dofs]
        value = float(value)
        current = self.constraints[step]
        for dof in dof_list:
            existing = current.get(dof)
            if existing is None:
                current[dof] = value
            elif existing != value:
                raise ValueError(
                    f"Degree of freedom {dof} is doubly constrained with different values"
                )

    def mark_changed(self, step: int) -> None:
        """Force the reorder matrices of ``step`` to be rebuilt on the next assembly."""
        self.dofs_changed[step] = True

    def _build(self, step: int, dofs: tuple[int, ...]) -> _Structure:
        start, stop = (int(v) for v in self.dofspace.local_dof_num_range[step])
        n_local = stop - start
        outside = [d for d in dofs if not start <= d < stop]
        if outside:
            raise ValueError(
                f"Constrained dofs {outside} lie outside the local range [{start}, {stop})"
            )
        con_set = set(dofs)
        con_rows, uncon_rows = [], []
        for dof in range(start, stop):
            (con_rows if dof in con_set else uncon_rows).append(dof - start)
        con_mat = sparse.coo_matrix(
            (np.ones(len(con_rows)), (con_rows, np.arange(len(con_rows)))),
            shape=(n_local, len(con_rows)),
        ).tocsr()
        uncon_mat = sparse.coo_matrix(
            (np.ones(len(uncon_rows)), (uncon_rows, np.arange(len(uncon_rows)))),
            shape=(n_local, len(uncon_rows)),
        ).tocsr()
        return _Structure(con_mat, uncon_mat, dofs, (start, stop))

    def assemble(self, step: int, state: Sequence[float]) -> ConstraintSystem:
        """Assemble the constraint structures of ``step`` against the current state.

        ``state`` is indexed by global dof number.
        """
        current = self.constraints[step]
        dofs = tuple(sorted(current))
        structure = self._structure[step]
        if self.dofs_changed[step] or structure is None:
            structure = self._build(step, dofs)
            self._structure[step] = structure
            self.dofs_changed[step] = False
            self.dof_version[step] += 1
        elif structure.dofs != dofs:
            raise RuntimeError(
                f"Constrained dofs of step {step} changed; call mark_changed first"
            )
        con_values = np.array([current[d] - float(state[d]) for d in dofs], dtype=float)
        return ConstraintSystem(
            con_mat=structure.con_mat,
            uncon_mat=structure.uncon_mat,
            constrained_dofs=dofs,
            con_values=con_values,
            local_range=structure.local_range,
            version=self.dof_version[step],
        )