# corrofem

Building blocks for staggered finite element solvers of corrosion problems.

## Modules

### `corrofem.dofsync`

Distributed numbering of degrees of freedom, computed for all ranks in a single
process. `node_ranges` gives the first global node each rank owns, followed by
one past the last node (`len(node_ranges) == n_ranks + 1`).

- `owner_of(node, node_ranges)` returns the rank that owns a node.
- `number_step(dofs_to_add, dof_steps, step, node_ranges)` numbers one staggered
  step and returns one `RankNumbering` per rank.
- `number_all_steps(dofs_to_add, dof_steps, max_steps, node_ranges)` numbers
  every step and returns a list indexed as `result[step][rank]`.

A request for a dof on a node owned by another rank is forwarded to the owning
rank before numbering starts. Each rank numbers the dofs it owns in a contiguous
block that follows the blocks of the lower ranks, ordered by dof type and then
by ascending node. Dofs on nodes that belong to other ranks are resolved as
ghosts. A `RankNumbering` holds `local_range`, `total`, `numbering`
(`numbering[dof_index][node] -> dof`) and `ghost_dofs`. It also offers
`local_count` and `dof(dof_index, node)`.

### `corrofem.dofspace`

`DofSpace(dof_names, dof_steps, save_folder)` manages the named dof types for one
rank. It can also be built with `DofSpace.from_inputs(...)` from a nested mapping
that has the keys `Dofs/DofNames`, `Dofs/DofStep` and `Outputs/SaveFolder`.

- `find_dof_type`, `has_dof_type`, `get_dof_type_step` and `get_dof_types_steps`
  look up the index and step of a dof type. The `get_*` methods raise
  `ValueError` for an unknown name.
- `add_dofs(nodes, dof_indices)` requests dof types on nodes. Duplicate requests
  are ignored.
- `sync_dofs(node_ranges, rank)` numbers the requests of this rank. It fills
  `local_dof_num_range`, `total_dof_range`, `dof_numbering` and the ghost dofs,
  and logs a summary (`stats_message(step)`) through `logging`.
- `get_dof_for_nodes`, `get_dofs_for_nodes` and `get_dof_for_nodes_series` map
  nodes to dof numbers. `ghost_dof_numbers(step)` returns the ghosts of a step.
- `to_dict()` and `load_dict(data)` save and restore the numbering.
  `export(path=None)` writes `(node, dof)` tables to an `.npz` file, which by
  default is `<save_folder>/DofSpace.npz`.

### `corrofem.constrainer`

`Constrainer(dofspace)` collects Dirichlet values for each staggered step.

- `add_constraint(step, dofs, value)` accepts a dof constrained twice to the same
  value. A second, different value raises `ValueError`. `set_zero(step)` clears
  the constraints of a step.
- `assemble(step, state)` returns a `ConstraintSystem`. It holds sparse reorder
  matrices `con_mat` and `uncon_mat`, whose rows are local dof positions, along
  with the constrained dofs and the increments still needed to reach the
  prescribed values. `ConstraintSystem.expand(free_values, constrained_values=None)`
  rebuilds a full local vector.
- The matrices are rebuilt on the first assembly and after `mark_changed(step)`.
  If the set of constrained dofs changes without that call, `assemble` raises
  `RuntimeError`.

### `corrofem.timeschemes`

`TimeScheme(scheme, constants)` supports these `Discretisation`s:

- Newmark, with `(beta, gamma)`.
- Alpha, with `(alpha,)`.
- Euler, which is Alpha with alpha = 1.
- BDF2, which takes no constants.

`TimeScheme.from_inputs(...)` reads `properties/TimeDiscretisation`.
`set_dt(dt)` sets `dt`, `du_dt` and `ddu_dt`.
`update_vel_acc(state, state_old, dstate_old, ddstate_old)` returns the new
`(velocity, acceleration)` arrays.

### `corrofem.stabilisation`

- `supg_scale(weights)`: the square root of the summed integration-point weights.
- `supg_stabilised(n, g, nu, u_nodes, scale, diff)`: the SUPG test-function
  addition and its derivative with respect to the nodal velocities.
- `isotropic_diffusivity`, `directional_diffusivity` and
  `density_scaled_diffusivity`: artificial diffusion that targets an element
  Péclet number of one. The density-scaled variant uses a density floor of 910.

## Installation

```
pip install .
```

To install pytest as well, add the `test` extra:

```
pip install ".[test]"
```

## Example

```python
import numpy as np

from corrofem.dofspace import DofSpace
from corrofem.constrainer import Constrainer
from corrofem.timeschemes import TimeScheme

dofs = DofSpace(["ux", "uy", "c"], [0, 0, 1], "results")
ux, _ = dofs.get_dof_type_step("ux")
dofs.add_dofs([0, 1, 2, 3], ux)
dofs.sync_dofs([0, 4], 0)            # a single rank owns nodes 0..3

numbers = dofs.get_dof_for_nodes([0, 1], ux)   # [0, 1]

con = Constrainer(dofs)
con.add_constraint(0, [0], 0.0)
system = con.assemble(0, np.zeros(dofs.total_dof_range[0]))
full = system.expand(np.ones(system.constrained_size))

scheme = TimeScheme("Newmark", [0.25, 0.5])
scheme.set_dt(0.1)
vel, acc = scheme.update_vel_acc(np.ones(4), np.zeros(4), np.zeros(4), np.zeros(4))
```

## What this package does not do

- There is no mesh, element library, assembly of physics models, linear or
  nonlinear solver, or time-stepping driver.
- There is no command-line program.
- There is no message passing between processes. `corrofem.dofsync` computes the
  numbering of all ranks in one process, and `DofSpace.sync_dofs` uses the
  requests of a single rank.
- There is no live plotting. Results are stored only as the `.npz` file written
  by `DofSpace.export` and the dictionary returned by `DofSpace.to_dict`.

## Running the tests

```
pytest
```