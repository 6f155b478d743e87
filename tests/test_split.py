import pytest

from dockkit.split import (
    Model,
    PdbqtParseError,
    default_prefix,
    main,
    parse_models,
    parse_multimodel_pdbqt,
    write_multimodel_pdbqt,
    write_pdbqt,
)

SAMPLE = [
    "MODEL 1",
    "REMARK VINA RESULT",
    "ROOT",
    "ATOM      1  C   LIG     1       0.000   0.000   0.000",
    "ENDROOT",
    "BEGIN_RES THR A  10",
    "ATOM      2  CB  THR A  10       1.000   1.000   1.000",
    "END_RES THR A  10",
    "ENDMDL",
    "MODEL 2",
    "ROOT",
    "ENDROOT",
    "ENDMDL",
]


def write_sample(path):
    path.write_text("\n".join(SAMPLE) + "\n")
    return path


def test_default_prefix_strips_extension():
    assert default_prefix("out.pdbqt", "_ligand_") == "out_ligand_"
    assert default_prefix("out.txt", "_flex_") == "out.txt_flex_"


def test_parse_models_splits_ligand_and_flex():
    models = parse_models(SAMPLE)
    assert len(models) == 2
    assert models[0].ligand == SAMPLE[1:5]
    assert models[0].flex == SAMPLE[5:8]
    assert models[1] == Model(ligand=SAMPLE[10:12], flex=[])


def test_parse_empty_input():
    assert parse_models([]) == []


@pytest.mark.parametrize(
    "lines,message",
    [
        (["ATOM"], "Input occurs outside MODEL at line 1."),
        (["MODEL 1", "MODEL 2"], "Misplaced MODEL tag at line 2."),
        (["ENDMDL"], "Misplaced ENDMDL tag at line 1."),
        (["BEGIN_RES"], "Misplaced BEGIN_RES tag at line 1."),
        (["MODEL 1", "END_RES"], "Misplaced END_RES tag at line 2."),
        (["MODEL 1", "BEGIN_RES", "ENDMDL"], "Misplaced ENDMDL tag at line 3."),
        (["MODEL 1", "ATOM"], "Missing ENDMDL tag at line 3."),
    ],
)
def test_parse_errors(lines, message):
    with pytest.raises(PdbqtParseError) as info:
        parse_models(lines)
    assert str(info.value) == message


def test_parse_file_round_trip(tmp_path):
    path = write_sample(tmp_path / "in.pdbqt")
    assert parse_multimodel_pdbqt(path) == parse_models(SAMPLE)


def test_write_pdbqt_skips_empty(tmp_path):
    target = tmp_path / "empty.pdbqt"
    write_pdbqt([], target)
    assert not target.exists()
    write_pdbqt(["A", "B"], target)
    assert target.read_text() == "A\nB\n"


def test_write_multimodel_pads_numbers(tmp_path):
    models = [Model(ligand=[f"L{k}"], flex=[]) for k in range(10)]
    write_multimodel_pdbqt(models, str(tmp_path / "lig_"), str(tmp_path / "flex_"))
    assert (tmp_path / "lig_01.pdbqt").read_text() == "L0\n"
    assert (tmp_path / "lig_10.pdbqt").read_text() == "L9\n"
    assert not list(tmp_path.glob("flex_*"))


def test_main_splits_file_with_default_prefixes(tmp_path, capsys):
    path = write_sample(tmp_path / "out.pdbqt")
    assert main(["--input", str(path)]) == 0
    stdout = capsys.readouterr().out
    assert "Prefix for ligands will be" in stdout
    assert (tmp_path / "out_ligand_1.pdbqt").read_text().splitlines() == SAMPLE[1:5]
    assert (tmp_path / "out_flex_1.pdbqt").read_text().splitlines() == SAMPLE[5:8]
    assert not (tmp_path / "out_flex_2.pdbqt").exists()


def test_main_custom_prefixes(tmp_path):
    path = write_sample(tmp_path / "in.pdbqt")
    lig = str(tmp_path / "L")
    flex = str(tmp_path / "F")
    assert main(["--input", str(path), "--ligand", lig, "--flex", flex]) == 0
    assert (tmp_path / "L2.pdbqt").read_text().splitlines() == SAMPLE[10:12]


def test_main_missing_input(capsys):
    assert main([]) == 1
    assert "Missing input." in capsys.readouterr().err


def test_main_unknown_option(capsys):
    assert main(["--bogus"]) == 1
    assert "Command line parse error" in capsys.readouterr().err


def test_main_help(capsys):
    assert main(["--help"]) == 0
    assert "--input" in capsys.readouterr().out


def test_main_unreadable_input(tmp_path, capsys):
    assert main(["--input", str(tmp_path / "missing.pdbqt")]) == 1
    assert "for reading" in capsys.readouterr().err


def test_main_reports_parse_error(tmp_path, capsys):
    path = tmp_path / "bad.pdbqt"
    path.write_text("ATOM\n")
    assert main(["--input", str(path)]) == 1
    assert "Input occurs outside MODEL at line 1." in capsys.readouterr().err