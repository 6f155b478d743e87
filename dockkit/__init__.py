"""Kinematic trees for flexible docking and a multi-model PDBQT splitter."""

__version__ = "0.1.0"
__all__ = ["split", "tree"]