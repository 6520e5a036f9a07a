"""Time discretisation schemes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

import numpy as np

__all__ = ["Discretisation", "TimeScheme"]


class Discretisation(Enum):
    """Supported time discretisations."""

    NEWMARK = "Newmark"
    ALPHA = "Alpha"
    BDF2 = "BDF2"


_CONSTANT_COUNT = {
    Discretisation.NEWMARK: 2,
    Discretisation.ALPHA: 1,
    Discretisation.BDF2: 0,
}


def _lookup(inputs: Mapping[str, Any], keys: Sequence[str]) -> Any:
    node: Any = inputs
    for key in keys:
        if not isinstance(node, Mapping) or key not in node:
            raise KeyError(f"Required input {'/'.join(keys)} is missing")
        node = node[key]
    return node


class TimeScheme:
    """Velocity/acceleration update rules and their state derivatives.

    Newmark takes constants ``(beta, gamma)``, Alpha takes ``(alpha,)``,
    Euler is Alpha with alpha = 1 and BDF2 takes none.
    """

    def __init__(
        self, scheme: str | Discretisation, constants: Sequence[float] = ()
    ) -> None:
        if scheme == "Euler":
            self.scheme = Discretisation.ALPHA
            self.constants: tuple[float, ...] = (1.0,)
        else:
            try:
                self.scheme = Discretisation(scheme)
            except ValueError:
                raise ValueError("Time Discretisation type not defined") from None
            needed = _CONSTANT_COUNT[self.scheme]
            values = tuple(float(c) for c in constants)
            if len(values) != needed:
                raise ValueError(
                    f"{self.scheme.value} needs {needed} constants, got {len(values)}"
                )
            self.constants = values
        self.dt: float | None = None
        self.du_dt: float | None = None
        self.ddu_dt: float | None = None

    @classmethod
    def from_inputs(cls, inputs: Mapping[str, Any]) -> "TimeScheme":
        """Build from properties/TimeDiscretisation in a nested input mapping."""
        base = ("properties", "TimeDiscretisation")
        scheme = _lookup(inputs, base + ("Scheme",))
        if scheme == "Newmark":
            constants = (
                _lookup(inputs, base + ("beta",)),
                _lookup(inputs, base + ("gamma",)),
            )
        elif scheme == "Alpha":
            constants = (_lookup(inputs, base + ("alpha",)),)
        else:
            constants = ()
        return cls(scheme, constants)

    def set_dt(self, dt: float) -> None:
        """Set the time increment and the derivatives of velocity/acceleration to state."""
        dt = float(dt)
        if dt <= 0.0:
            raise ValueError("Time increment must be positive")
        self.dt = dt
        if self.scheme is Discretisation.NEWMARK:
            beta, gamma = self.constants
            self.du_dt = gamma / (dt * beta)
            self.ddu_dt = 1.0 / (dt * dt * beta)
        elif self.scheme is Discretisation.ALPHA:
            self.du_dt = 1.0 / (dt * self.constants[0])
            self.ddu_dt = 0.0
        else:
            self.du_dt = 1.0 / dt
            self.ddu_dt = 1.0 / (dt * dt)

    def update_vel_acc(
        self,
        state: Sequence[float],
        state_old: Sequence[float],
        dstate_old: Sequence[float],
        ddstate_old: Sequence[float],
    ) -> tuple[np.ndarray, np.ndarray]:
        """Return the new ``(velocity, acceleration)`` from current and old states."""
        if self.dt is None:
            raise RuntimeError("Time increment not set; call set_dt first")
        dt = self.dt
        x = np.asarray(state, dtype=float)
        xo = np.asarray(state_old, dtype=float)
        vo = np.asarray(dstate_old, dtype=float)
        ao = np.asarray(ddstate_old, dtype=float)
        dx = x - xo

        if self.scheme is Discretisation.NEWMARK:
            beta, gamma = self.constants
            acc = dx / (dt * dt * beta) - vo / (beta * dt) - (1.0 / (2.0 * beta) - 1.0) * ao
            vel = (
                gamma / (dt * beta) * dx
                - (gamma / beta - 1.0) * vo
                - (dt * gamma / (2.0 * beta) - dt) * ao
            )
        elif self.scheme is Discretisation.ALPHA:
            alpha = self.constants[0]
            acc = np.zeros_like(x)
            vel = dx / (dt * alpha) + (1.0 - 1.0 / alpha) * vo
        else:
            acc = dx / (dt * dt) - vo
            vel = dx / dt
        return vel, acc