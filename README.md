# dockkit

This package has two parts. The first is a set of kinematic-tree building
blocks for flexible molecular docking. The second is a small command-line
tool that splits multi-model PDBQT files.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Splitting multi-model PDBQT files

Docking results often come as one PDBQT file that holds many `MODEL` /
`ENDMDL` blocks. Inside each model, the lines from `BEGIN_RES` to `END_RES`
describe flexible side chains. Every other line in the model belongs to the
ligand. `dockkit-split` writes the ligand part and the flexible part of each
model to separate numbered files:

```
dockkit-split --input out.pdbqt
```

The command produces `out_ligand_1.pdbqt`, `out_ligand_2.pdbqt`, and so on.
Models that have flexible residues also produce `out_flex_1.pdbqt`, and so
on. If a part of a model has no lines, no file is written for it. The
numbers are zero-padded to the width of the model count.

The default prefixes come from the input name, with any trailing `.pdbqt`
removed. You can set your own prefixes with `--ligand` and `--flex`:

```
dockkit-split --input out.pdbqt --ligand lig_ --flex res_
```

Other options and behaviour:

- The program prints a version banner on every run.
- `--help` prints the options.
- `--version` stops after the banner.
- Options must be spelled out in full. Abbreviations are rejected.
- The exit status is 0 on success. It is 1 when arguments are wrong or
  missing, when a file cannot be read or written, or when the input is
  malformed.

You can do the same from Python:

```python
from dockkit.split import parse_multimodel_pdbqt, write_multimodel_pdbqt

models = parse_multimodel_pdbqt("out.pdbqt")
write_multimodel_pdbqt(models, "lig_", "res_")
```

Malformed input raises `dockkit.split.PdbqtParseError`. This happens when a
`MODEL`, `ENDMDL`, `BEGIN_RES` or `END_RES` tag is misplaced, when lines
appear outside a model, or when the final `ENDMDL` is missing. The error
message gives the line number.

`parse_models` parses any iterable of lines that have no line endings.
`default_prefix` builds the default prefixes. `Model` holds the `ligand`
and `flex` lines of one model.

## Kinematic trees

`dockkit.tree` models a molecule as a tree of rigid frames joined by
rotatable bonds. The local coordinates of the atoms are passed as an
`(N, 3)` array-like. Lab coordinates are written into an `(N, 3)` numpy
array that the caller owns.

The node types are:

- `RigidBody` is the root of a ligand. It has a free position and a free
  orientation.
- `FirstSegment` is the root of a flexible residue. It only rotates about a
  fixed axis.
- `Segment` is a node that rotates about the bond to its parent frame.

Nodes are joined into a hierarchy as follows:

- A `Tree` holds a `Segment` and its child trees.
- A `HeteroTree` holds a `RigidBody` or a `FirstSegment` root and its child
  `Tree` branches.

To place the atoms, call `HeteroTree.set_conf`:

- A rigid-body root takes a `LigandConf`. This holds a `RigidConf` with the
  position and orientation quaternion, plus a list of torsions.
- A first-segment root takes a `ResidueConf`. This holds only torsions.

If the number of torsions does not match the tree, the call raises
`ValueError`.

`HeteroTree.derivative` turns per-atom forces into gradients:

- For a ligand it returns a `LigandChange`, which holds a `RigidChange` with
  position and orientation gradients, plus the torsion gradients.
- For a residue it returns a `ResidueChange` with the torsion gradients.

There are helpers that work on whole trees or on lists of trees:

- `count_torsions` counts the torsions in one tree.
- `transform_ranges` remaps the atom index ranges.
- `set_confs`, `count_all_torsions` and `derivatives` work on lists of
  trees.
- `angle_to_quaternion` and `quaternion_to_matrix` are the underlying
  rotation helpers.

## What this package does not do

This package does not read molecules from PDBQT into trees, score poses or
run a docking search. The tree classes must be built by hand from atom
ranges and coordinates. The only PDBQT handling is the line-level splitting
described above.