from __future__ import annotations

from pathlib import Path

import pytest

import tagdxf
import tagdxf.cli as cli_module
from tests._dxf_helpers import dxf_document, dxf_entities_of_type, dxf_text

_ENTITIES = (
    dxf_text((999, "written by hand"))
    + dxf_text((0, "LINE"), (5, "1A"), (8, "0"), (10, "1.0"), (11, "2.0"), (1001, "APP"))
    + dxf_text((0, "LINE"), (5, "1B"), (8, "0"), (10, "3.0"), (11, "4.0"))
    + dxf_text((0, "ARC"), (5, "1C"), (8, "0"), (40, "1.0"), (50, "0.0"), (51, "90.0"))
    + dxf_text((0, "TOLERANCE"), (5, "1D"), (8, "0"))
    + dxf_text((0, "HATCH"), (5, "1E"), (8, "0"))
)


def _source(tmp_path: Path) -> Path:
    path = tmp_path / "drawing.dxf"
    path.write_text(dxf_document(_ENTITIES, acadver="AC1015"), encoding="cp1252")
    return path


def test_cli_inspect_prints_counts_and_diagnostics(tmp_path: Path, capsys) -> None:
    path = _source(tmp_path)

    rc = cli_module.main(["inspect", str(path)])
    out = capsys.readouterr().out

    assert rc == 0
    assert f"file: {path}" in out
    assert "version: AC1015 (R2000)" in out
    assert "total_entities: 3" in out
    assert "LINE: 2" in out
    assert "ARC: 1" in out
    assert "skipped[HATCH]: 1" in out
    assert "skipped[TOLERANCE]: 1" in out
    assert "diagnostics[unrecognized]: 1" in out
    assert "diagnostics[validation]: 1" in out
    assert "comments: 1" in out
    assert "diagnostic: " not in out


def test_cli_inspect_verbose_lists_details(tmp_path: Path, capsys) -> None:
    rc = cli_module.main(["inspect", str(_source(tmp_path)), "--verbose"])
    out = capsys.readouterr().out

    assert rc == 0
    assert "diagnostic: unrecognized: unknown group code 1001" in out
    assert "comment: written by hand" in out


def test_cli_inspect_missing_file(tmp_path: Path, capsys) -> None:
    rc = cli_module.main(["inspect", str(tmp_path / "nope.dxf")])

    assert rc == 2
    assert "error: file not found" in capsys.readouterr().err


def test_cli_inspect_reports_unreadable_file(tmp_path: Path, capsys) -> None:
    path = tmp_path / "broken.dxf"
    path.write_text("  0\nSECTION\nnot a code\nENTITIES\n", encoding="utf-8")

    rc = cli_module.main(["inspect", str(path)])

    assert rc == 2
    assert "error: failed to read DXF: invalid group code" in capsys.readouterr().err


def test_cli_convert_writes_output(tmp_path: Path, capsys) -> None:
    output = tmp_path / "out.dxf"

    rc = cli_module.main(
        ["convert", str(_source(tmp_path)), str(output), "--types", "LINE", "--dxf-version", "R12"]
    )
    out = capsys.readouterr().out

    assert rc == 0
    assert "target_version: R12" in out
    assert "total_entities: 2" in out
    assert "written_entities: 2" in out
    assert len(dxf_entities_of_type(output, "LINE")) == 2


def test_cli_convert_echoes_comments(tmp_path: Path, capsys) -> None:
    rc = cli_module.main(
        ["convert", str(_source(tmp_path)), str(tmp_path / "out.dxf"), "--echo-comments"]
    )

    assert rc == 0
    assert "DXF comment: written by hand" in capsys.readouterr().out


def test_cli_convert_strict_failure(tmp_path: Path, capsys) -> None:
    source = tmp_path / "light.dxf"
    source.write_text(
        dxf_document(dxf_text((0, "LIGHT"), (5, "20"), (8, "0")), acadver="AC1021"),
        encoding="utf-8",
    )

    rc = cli_module.main(["convert", str(source), str(tmp_path / "out.dxf"), "--dxf-version", "R2000", "--strict"])

    assert rc == 2
    assert "error: failed to convert DXF: failed to write 1 entities (LIGHT:1)" in capsys.readouterr().err


def test_cli_convert_rejects_unknown_version(tmp_path: Path, capsys) -> None:
    rc = cli_module.main(["convert", str(_source(tmp_path)), str(tmp_path / "out.dxf"), "--dxf-version", "R9"])

    assert rc == 2
    assert "unknown DXF version" in capsys.readouterr().err


def test_cli_without_command_prints_help(capsys) -> None:
    assert cli_module.main([]) == 0
    assert "usage: tagdxf" in capsys.readouterr().out


def test_cli_version_flag(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli_module, "_package_version", lambda: "9.9.9")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["--version"])

    assert excinfo.value.code == 0
    assert "tagdxf 9.9.9" in capsys.readouterr().out


def test_package_main_delegates_to_cli(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(cli_module, "main", lambda argv=None: calls.append(argv) or 0)

    assert tagdxf.main(["inspect", "x.dxf"]) == 0
    assert calls == [["inspect", "x.dxf"]]
