"""Dof numbering, nodal constraints, time schemes and stabilisation for finite element corrosion models."""

__version__ = "0.1.0"

__all__ = ["constrainer", "dofspace", "dofsync", "stabilisation", "timeschemes"]