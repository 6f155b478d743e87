"""Kinematic trees of rigid atom fragments joined by rotatable bonds.

Atom local coordinates are given as an (N, 3) array-like; lab coordinates
are written into a caller-owned (N, 3) numpy array.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Sequence, Tuple

import numpy as np

EPSILON = float(np.finfo(float).eps)
QT_IDENTITY = np.array([1.0, 0.0, 0.0, 0.0])
_MISSING = object()

ForceTorque = Tuple[np.ndarray, np.ndarray]


def _vec(v) -> np.ndarray:
    return np.array(v, dtype=float)


def angle_to_quaternion(axis, angle):
    """Quaternion rotating by ``angle`` radians about the unit vector ``axis``."""
    half = 0.5 * float(angle)
    return np.concatenate(([math.cos(half)], math.sin(half) * _vec(axis)))


def quaternion_to_matrix(q):
    """Rotation matrix of a unit quaternion (a, b, c, d)."""
    a, b, c, d = (float(x) for x in q)
    aa, ab, ac, ad = a * a, a * b, a * c, a * d
    bb, bc, bd = b * b, b * c, b * d
    cc, cd = c * c, c * d
    dd = d * d
    return np.array(
        [
            [aa + bb - cc - dd, 2 * (-ad + bc), 2 * (ac + bd)],
            [2 * (ad + bc), aa - bb + cc - dd, 2 * (-ab + cd)],
            [2 * (-ac + bd), 2 * (ab + cd), aa - bb - cc + dd],
        ]
    )


def _quaternion_multiply(p, q) -> np.ndarray:
    a1, b1, c1, d1 = p
    a2, b2, c2, d2 = q
    return np.array(
        [
            a1 * a2 - b1 * b2 - c1 * c2 - d1 * d2,
            a1 * b2 + b1 * a2 + c1 * d2 - d1 * c2,
            a1 * c2 - b1 * d2 + c1 * a2 + d1 * b2,
            a1 * d2 + b1 * c2 - c1 * b2 + d1 * a2,
        ]
    )


def _normalize_approx(q: np.ndarray, tolerance: float = 1e-6) -> np.ndarray:
    s = float(np.dot(q, q))
    if abs(s - 1.0) < tolerance:
        return q
    norm = math.sqrt(s)
    if norm <= EPSILON:
        raise ValueError("cannot normalize a zero quaternion")
    return q / norm


def _next_torsion(torsions: Iterator[float]) -> float:
    value = next(torsions, _MISSING)
    if value is _MISSING:
        raise ValueError("not enough torsions for the tree")
    return float(value)


@dataclass
class RigidConf:
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orientation: np.ndarray = field(default_factory=lambda: QT_IDENTITY.copy())

    def __post_init__(self):
        self.position = _vec(self.position)
        self.orientation = _vec(self.orientation)


@dataclass
class LigandConf:
    rigid: RigidConf = field(default_factory=RigidConf)
    torsions: List[float] = field(default_factory=list)


@dataclass
class ResidueConf:
    torsions: List[float] = field(default_factory=list)


@dataclass
class RigidChange:
    position: np.ndarray
    orientation: np.ndarray


@dataclass
class LigandChange:
    rigid: RigidChange
    torsions: List[float] = field(default_factory=list)


@dataclass
class ResidueChange:
    torsions: List[float] = field(default_factory=list)


class Frame:
    """A coordinate frame with an origin and an orientation."""

    def __init__(self, origin):
        self.origin = _vec(origin)
        self._set_orientation(QT_IDENTITY)

    @property
    def orientation(self) -> np.ndarray:
        return self._orientation_q

    def _set_orientation(self, q) -> None:
        # does not normalize
        self._orientation_q = _vec(q)
        self._orientation_m = quaternion_to_matrix(self._orientation_q)

    def local_to_lab(self, local_coords):
        return self.origin + self._orientation_m @ _vec(local_coords)

    def local_to_lab_direction(self, local_direction):
        return self._orientation_m @ _vec(local_direction)


class AtomRange:
    """A half-open range [begin, end) of atom indices."""

    def __init__(self, begin: int, end: int):
        self.begin = begin
        self.end = end

    def transform(self, f: Callable[[int], int]) -> None:
        diff = self.end - self.begin
        self.begin = f(self.begin)
        self.end = self.begin + diff


class AtomFrame(Frame, AtomRange):
    """A frame that owns a contiguous range of atoms."""

    def __init__(self, origin, begin: int, end: int):
        Frame.__init__(self, origin)
        AtomRange.__init__(self, begin, end)

    def set_coords(self, atoms, coords: np.ndarray) -> None:
        local = np.asarray(atoms, dtype=float)[self.begin:self.end]
        coords[self.begin:self.end] = self.origin + local @ self._orientation_m.T

    def sum_force_and_torque(self, coords, forces) -> ForceTorque:
        c = np.asarray(coords, dtype=float)[self.begin:self.end].reshape(-1, 3)
        f = np.asarray(forces, dtype=float)[self.begin:self.end].reshape(-1, 3)
        force = f.sum(axis=0)
        torque = np.cross(c - self.origin, f).sum(axis=0) if len(f) else np.zeros(3)
        return force, torque


class RigidBody(AtomFrame):
    """Root frame with free position and orientation."""

    def set_conf(self, atoms, coords, conf: RigidConf) -> None:
        self.origin = _vec(conf.position)
        self._set_orientation(conf.orientation)
        self.set_coords(atoms, coords)

    def count_torsions(self) -> int:
        return 0

    def set_derivative(self, force_torque: ForceTorque) -> RigidChange:
        force, torque = force_torque
        return RigidChange(position=_vec(force), orientation=_vec(torque))


class AxisFrame(AtomFrame):
    """Frame rotating about the axis from ``axis_root`` to its origin."""

    def __init__(self, origin, begin: int, end: int, axis_root):
        super().__init__(origin, begin, end)
        diff = self.origin - _vec(axis_root)
        nrm = float(np.linalg.norm(diff))
        if nrm < EPSILON:
            raise ValueError("rotation axis has zero length")
        self.axis = diff / nrm

    def set_derivative(self, force_torque: ForceTorque) -> float:
        return float(np.dot(force_torque[1], self.axis))


class Segment(AxisFrame):
    """A frame attached to a parent frame through one torsion."""

    def __init__(self, origin, begin: int, end: int, axis_root, parent: Frame):
        super().__init__(origin, begin, end, axis_root)
        if not np.allclose(parent.orientation, QT_IDENTITY):
            raise ValueError("parent frame must have identity orientation")
        self._relative_axis = self.axis.copy()
        self._relative_origin = self.origin - parent.origin

    def set_conf(self, parent: Frame, atoms, coords, torsions: Iterator[float]) -> None:
        torsion = _next_torsion(torsions)
        self.origin = parent.local_to_lab(self._relative_origin)
        self.axis = parent.local_to_lab_direction(self._relative_axis)
        q = _quaternion_multiply(angle_to_quaternion(self.axis, torsion), parent.orientation)
        self._set_orientation(_normalize_approx(q))
        self.set_coords(atoms, coords)

    def count_torsions(self) -> int:
        return 1


class FirstSegment(AxisFrame):
    """Root frame of a flexible residue, rotating about a fixed axis."""

    def set_conf(self, atoms, coords, torsion: float) -> None:
        self._set_orientation(angle_to_quaternion(self.axis, torsion))
        self.set_coords(atoms, coords)

    def count_torsions(self) -> int:
        return 1


def _branches_derivative(children, origin, coords, forces, force, torque, out):
    for child in children:
        child_force, child_torque = child.derivative(coords, forces, out)
        force = force + child_force
        r = child.node.origin - origin
        torque = torque + np.cross(r, child_force) + child_torque
    return force, torque


class Tree:
    """A segment together with the branches hanging from it."""

    def __init__(self, node: Segment, children: Sequence["Tree"] | None = None):
        self.node = node
        self.children: List[Tree] = list(children or [])

    def set_conf(self, parent: Frame, atoms, coords, torsions: Iterator[float]) -> None:
        self.node.set_conf(parent, atoms, coords, torsions)
        for child in self.children:
            child.set_conf(self.node, atoms, coords, torsions)

    def derivative(self, coords, forces, out: List[float]) -> ForceTorque:
        """Append torsion derivatives of this subtree to ``out`` in preorder."""
        force, torque = self.node.sum_force_and_torque(coords, forces)
        slot = len(out)
        out.append(0.0)
        force, torque = _branches_derivative(
            self.children, self.node.origin, coords, forces, force, torque, out
        )
        out[slot] = self.node.set_derivative((force, torque))
        return force, torque


class HeteroTree:
    """A root frame (rigid body or first segment) with branches."""

    def __init__(self, node: RigidBody | FirstSegment, children: Sequence[Tree] | None = None):
        self.node = node
        self.children: List[Tree] = list(children or [])

    @property
    def _is_ligand(self) -> bool:
        return isinstance(self.node, RigidBody)

    def set_conf(self, atoms, coords, conf) -> None:
        if self._is_ligand:
            if not isinstance(conf, LigandConf):
                raise TypeError("a rigid-body tree needs a LigandConf")
            self.node.set_conf(atoms, coords, conf.rigid)
            torsions = iter(conf.torsions)
        else:
            if not isinstance(conf, ResidueConf):
                raise TypeError("a residue tree needs a ResidueConf")
            torsions = iter(conf.torsions)
            self.node.set_conf(atoms, coords, _next_torsion(torsions))
        for child in self.children:
            child.set_conf(self.node, atoms, coords, torsions)
        if next(torsions, _MISSING) is not _MISSING:
            raise ValueError("too many torsions for the tree")

    def derivative(self, coords, forces) -> LigandChange | ResidueChange:
        force, torque = self.node.sum_force_and_torque(coords, forces)
        out: List[float] = []
        if not self._is_ligand:
            out.append(0.0)
        force, torque = _branches_derivative(
            self.children, self.node.origin, coords, forces, force, torque, out
        )
        if self._is_ligand:
            return LigandChange(rigid=self.node.set_derivative((force, torque)), torsions=out)
        out[0] = self.node.set_derivative((force, torque))
        return ResidueChange(torsions=out)


def count_torsions(t) -> int:
    """Number of torsions in a tree or heterotree."""
    return t.node.count_torsions() + sum(count_torsions(child) for child in t.children)


def transform_ranges(t, f: Callable[[int], int]) -> None:
    """Remap the atom ranges of every node in the tree."""
    t.node.transform(f)
    for child in t.children:
        transform_ranges(child, f)


def set_confs(trees: Sequence[HeteroTree], atoms, coords, confs) -> None:
    if len(trees) != len(confs):
        raise ValueError("number of conformations does not match number of trees")
    for tree, conf in zip(trees, confs):
        tree.set_conf(atoms, coords, conf)


def count_all_torsions(trees: Sequence[HeteroTree]) -> List[int]:
    return [count_torsions(tree) for tree in trees]


def derivatives(trees: Sequence[HeteroTree], coords, forces) -> list:
    return [tree.derivative(coords, forces) for tree in trees]