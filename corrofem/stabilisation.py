"""Stabilisation for convection-dominated transport: SUPG and artificial diffusion."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

__all__ = [
    "supg_scale",
    "supg_stabilised",
    "isotropic_diffusivity",
    "directional_diffusivity",
    "density_scaled_diffusivity",
]

_SMALL = 1.0e-12
_PECLET_TARGET = 1.0
_MIN_DENSITY = 910.0


def supg_scale(weights: Sequence[float]) -> float:
    """Representative element length scale: square root of the summed IP weights."""
    return float(np.sqrt(np.sum(np.asarray(weights, dtype=float))))


def _velocity_operator(nu: Sequence[float], u_nodes: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
    shape = np.asarray(nu, dtype=float).ravel()
    nodes = np.asarray(u_nodes, dtype=float).ravel()
    n_vel = nodes.size // 2
    if shape.size != n_vel or nodes.size != 2 * n_vel:
        raise ValueError("u_nodes must hold x then y velocities for every velocity shape function")
    operator = np.zeros((2, 2 * n_vel))
    operator[0, :n_vel] = shape
    operator[1, n_vel:] = shape
    return operator, operator @ nodes


def supg_stabilised(
    n: Sequence[float],
    g: np.ndarray,
    nu: Sequence[float],
    u_nodes: Sequence[float],
    scale: float,
    diff: float,
) -> tuple[np.ndarray, np.ndarray]:
    """SUPG test-function addition and its derivative to the nodal velocities.

    ``g`` holds the test-function gradients (2 x n_nodes); ``u_nodes`` holds
    the nodal velocities ordered x-components first. Returns ``(n_supg,
    dn_supg_du)`` with shapes ``(n_nodes,)`` and ``(2 * n_vel, n_nodes)``.
    ``n`` and ``diff`` are accepted for interface compatibility; the upwind
    factor is the plain half length scale.
    """
    grads = np.asarray(g, dtype=float)
    operator, u = _velocity_operator(nu, u_nodes)
    u_norm = max(float(np.linalg.norm(u)), _SMALL)
    pre_fac = 0.5 * scale
    d_unit = np.eye(2) / u_norm - np.outer(u, u) / u_norm**3
    n_supg = pre_fac * (u / u_norm) @ grads
    dn_supg_du = pre_fac * operator.T @ d_unit.T @ grads
    return n_supg, dn_supg_du


def isotropic_diffusivity(
    nu: Sequence[float], u_nodes: Sequence[float], weights: Sequence[float], diff: float
) -> float:
    """Diffusivity raised to reach a cell Peclet number of one."""
    _, u = _velocity_operator(nu, u_nodes)
    artificial = float(np.linalg.norm(u)) * supg_scale(weights) / 2.0 / _PECLET_TARGET
    return diff if artificial <= diff else artificial


def _raise_diagonal(diff: np.ndarray, artificial: np.ndarray) -> np.ndarray:
    result = np.array(diff, dtype=float, copy=True)
    if result.ndim != 2 or result.shape[0] < 2 or result.shape[1] < 2:
        raise ValueError("diff must be a matrix of at least 2 x 2")
    for i in range(2):
        result[i, i] = max(result[i, i], artificial[i])
    return result


def directional_diffusivity(
    nu: Sequence[float], u_nodes: Sequence[float], weights: Sequence[float], diff: np.ndarray
) -> np.ndarray:
    """Diffusivity matrix whose x and y diagonal entries are raised per velocity component."""
    _, u = _velocity_operator(nu, u_nodes)
    artificial = np.abs(u) * supg_scale(weights) / 2.0 / _PECLET_TARGET
    return _raise_diagonal(diff, artificial)


def density_scaled_diffusivity(
    nu: Sequence[float],
    u_nodes: Sequence[float],
    weights: Sequence[float],
    diff: np.ndarray,
    rho: float,
) -> np.ndarray:
    """Uniform artificial viscosity scaled by density (floored at 910)."""
    _, u = _velocity_operator(nu, u_nodes)
    magnitude = float(np.linalg.norm(u))
    rho = max(float(rho), _MIN_DENSITY)
    if magnitude == 0.0:
        artificial = np.zeros(2)
    else:
        value = rho * magnitude * supg_scale(weights) / 2.0 / _PECLET_TARGET
        artificial = np.array([value, value])
    return _raise_diagonal(diff, artificial)