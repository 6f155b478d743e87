"""Split a multi-model PDBQT file into per-model ligand and flexible-residue files."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence

VERSION_STRING = "dockkit PDBQT Split 1.0"
_SUFFIX = ".pdbqt"


class PdbqtParseError(ValueError):
    """Raised when a PDBQT file has misplaced or missing tags."""


class _UsageError(Exception):
    pass


@dataclass
class Model:
    ligand: List[str] = field(default_factory=list)
    flex: List[str] = field(default_factory=list)


def default_prefix(input_name: str, add: str) -> str:
    """Strip a trailing .pdbqt from the input name and append ``add``."""
    if input_name.endswith(_SUFFIX):
        input_name = input_name[: -len(_SUFFIX)]
    return input_name + add


def parse_models(lines: Iterable[str]) -> List[Model]:
    """Group lines into models, separating ligand lines from residue lines."""
    models: List[Model] = []
    parsing_model = False
    parsing_ligand = True
    count = 0
    for line in lines:
        count += 1
        if line.startswith("MODEL"):
            if parsing_model or not parsing_ligand:
                raise PdbqtParseError(f"Misplaced MODEL tag at line {count}.")
            models.append(Model())
            parsing_model = True
        elif line.startswith("ENDMDL"):
            if not parsing_model or not parsing_ligand:
                raise PdbqtParseError(f"Misplaced ENDMDL tag at line {count}.")
            parsing_model = False
        elif line.startswith("BEGIN_RES"):
            if not parsing_model or not parsing_ligand:
                raise PdbqtParseError(f"Misplaced BEGIN_RES tag at line {count}.")
            parsing_ligand = False
            models[-1].flex.append(line)
        elif line.startswith("END_RES"):
            if not parsing_model or parsing_ligand:
                raise PdbqtParseError(f"Misplaced END_RES tag at line {count}.")
            parsing_ligand = True
            models[-1].flex.append(line)
        else:
            if not parsing_model:
                raise PdbqtParseError(f"Input occurs outside MODEL at line {count}.")
            target = models[-1].ligand if parsing_ligand else models[-1].flex
            target.append(line)
    if parsing_model:
        raise PdbqtParseError(f"Missing ENDMDL tag at line {count + 1}.")
    return models


def _read_lines(handle) -> Iterable[str]:
    for line in handle:
        yield line[:-1] if line.endswith("\n") else line


def parse_multimodel_pdbqt(path) -> List[Model]:
    """Read and parse a multi-model PDBQT file."""
    with open(path, encoding="utf-8", newline="") as handle:
        return parse_models(_read_lines(handle))


def write_pdbqt(lines: Sequence[str], name) -> None:
    """Write lines to ``name``; nothing is written when there are no lines."""
    if not lines:
        return
    with open(name, "w", encoding="utf-8", newline="") as out:
        out.writelines(f"{line}\n" for line in lines)


def write_multimodel_pdbqt(models: Sequence[Model], ligand_prefix: str, flex_prefix: str) -> None:
    """Write each model to zero-padded, numbered ligand and flex files."""
    width = len(str(len(models)))
    for counter, model in enumerate(models, start=1):
        add = f"{counter:0{width}d}{_SUFFIX}"
        write_pdbqt(model.ligand, ligand_prefix + add)
        write_pdbqt(model.flex, flex_prefix + add)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise _UsageError(message)


def _build_parser() -> _ArgumentParser:
    parser = _ArgumentParser(prog="pdbqt-split", add_help=False, allow_abbrev=False)
    inputs = parser.add_argument_group("Input")
    inputs.add_argument("--input", help="input to split (PDBQT)")
    outputs = parser.add_argument_group(
        "Output (optional) - defaults are chosen based on the input file name"
    )
    outputs.add_argument("--ligand", help="prefix for ligands")
    outputs.add_argument("--flex", help="prefix for side chains")
    info = parser.add_argument_group("Information (optional)")
    info.add_argument("--help", action="store_true", help="print this message")
    info.add_argument("--version", action="store_true", help="print program version")
    return parser


def main(argv=None) -> int:
    parser = _build_parser()
    print(VERSION_STRING)
    try:
        args = parser.parse_args(argv)
    except _UsageError as e:
        print(
            f"Command line parse error: {e}\n\nCorrect usage:\n{parser.format_help()}",
            file=sys.stderr,
        )
        return 1
    if args.help:
        print(parser.format_help())
        return 0
    if args.version:
        return 0
    if args.input is None:
        print(f"Missing input.\n\nCorrect usage:\n{parser.format_help()}", file=sys.stderr)
        return 1

    ligand_prefix = args.ligand
    if ligand_prefix is None:
        ligand_prefix = default_prefix(args.input, "_ligand_")
        print(f"Prefix for ligands will be {ligand_prefix}")
    flex_prefix = args.flex
    if flex_prefix is None:
        flex_prefix = default_prefix(args.input, "_flex_")
        print(f"Prefix for flexible side chains will be {flex_prefix}")

    try:
        models = parse_multimodel_pdbqt(args.input)
    except OSError:
        print(f'\n\nError: could not open "{args.input}" for reading.', file=sys.stderr)
        return 1
    except PdbqtParseError as e:
        print(e, file=sys.stderr)
        return 1
    try:
        write_multimodel_pdbqt(models, ligand_prefix, flex_prefix)
    except OSError as e:
        name = e.filename if e.filename is not None else ""
        print(f'\n\nError: could not open "{name}" for writing.', file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())