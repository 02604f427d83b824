from __future__ import annotations

import io
from pathlib import Path

import ezdxf
import pytest
from ezdxf import recover

import tagdxf
from tagdxf.entity import ObjectId
from tagdxf.store import new_entity
from tagdxf.version import DxfVersion
from tests._dxf_helpers import dxf_document, dxf_entities_of_type, dxf_text, group_float, group_values

_ENTITIES = (
    dxf_text((0, "LINE"), (5, "40"), (8, "WALLS"), (10, "1.0"), (20, "2.0"), (11, "3.0"), (21, "4.0"))
    + dxf_text((0, "CIRCLE"), (5, "41"), (8, "0"), (10, "5.0"), (20, "6.0"), (40, "1.5"))
    + dxf_text((0, "LIGHT"), (5, "42"), (8, "0"), (1, "Sun"), (10, "0.0"), (20, "0.0"), (30, "9.0"))
    + dxf_text((0, "ACAD_PROXY_ENTITY"), (5, "43"), (8, "0"), (90, "498"), (310, "00AA"), (340, "1F"))
)


def _source(tmp_path: Path, acadver: str = "AC1021") -> Path:
    path = tmp_path / "source.dxf"
    path.write_text(dxf_document(_ENTITIES, acadver=acadver), encoding="utf-8")
    return path


def test_to_dxf_writes_selected_types(tmp_path: Path) -> None:
    output = tmp_path / "out" / "lines.dxf"

    result = tagdxf.to_dxf(str(_source(tmp_path)), str(output), types="LINE CIRCLE", dxf_version="R12")

    assert output.exists()
    assert result.total_entities == 2
    assert result.written_entities == 2
    assert result.skipped_entities == 0
    assert result.target_version == "R12"
    (line,) = dxf_entities_of_type(output, "LINE")
    assert group_values(line, "5") == ["40"]
    assert group_values(line, "8") == ["WALLS"]
    assert group_float(line, "11") == 3.0
    assert "100" not in [code for code, _ in line["groups"]]
    (circle,) = dxf_entities_of_type(output, "CIRCLE")
    assert group_float(circle, "40") == 1.5


def test_to_dxf_skips_entities_without_representation(tmp_path: Path) -> None:
    output = tmp_path / "r2000.dxf"

    result = tagdxf.to_dxf(str(_source(tmp_path)), str(output), dxf_version="R2000")

    assert result.total_entities == 4
    assert result.written_entities == 3
    assert result.skipped_by_type == {"LIGHT": 1}
    assert dxf_entities_of_type(output, "LIGHT") == []


def test_to_dxf_strict_fails_on_skips(tmp_path: Path) -> None:
    output = tmp_path / "strict.dxf"

    with pytest.raises(ValueError, match=r"failed to write 2 entities \(ACAD_PROXY_ENTITY:1, LIGHT:1\)"):
        tagdxf.to_dxf(str(_source(tmp_path)), str(output), dxf_version="R12", strict=True)

    assert not output.exists()


def test_proxy_is_written_as_zombie_for_r13(tmp_path: Path) -> None:
    output = tmp_path / "r13.dxf"

    tagdxf.to_dxf(str(_source(tmp_path)), str(output), types="ACAD_PROXY_ENTITY", dxf_version="R13")

    (zombie,) = dxf_entities_of_type(output, "ACAD_ZOMBIE_ENTITY")
    assert group_values(zombie, "310") == ["00AA"]
    # object ids have no R13 representation
    assert group_values(zombie, "340") == []
    reread = tagdxf.read(str(output))
    (proxy,) = reread.query("ACAD_PROXY_ENTITY")
    assert reread.version is DxfVersion.R13
    assert proxy.binary_graphics_data == ["00AA"]


def test_document_saveas_round_trips(tmp_path: Path) -> None:
    doc = tagdxf.read(str(_source(tmp_path)))
    output = tmp_path / "copy.dxf"

    result = doc.saveas(str(output))
    reread = tagdxf.read(str(output))

    assert result.target_version == "R2007"
    assert result.written_entities == 4
    assert reread.version is DxfVersion.R2007
    assert [entity.dxftype for entity in reread.query()] == [
        "LINE",
        "CIRCLE",
        "LIGHT",
        "ACAD_PROXY_ENTITY",
    ]
    (proxy,) = reread.query("ACAD_PROXY_ENTITY")
    assert proxy.object_ids == [ObjectId(340, "1F")]
    assert reread.diagnostics == []


def test_write_dxf_emits_tables_before_entities(tmp_path: Path) -> None:
    vport = new_entity("VPORT")
    vport.dxf.update(id_code=0x10, name="*ACTIVE", view_height=12.0)
    line = new_entity("LINE")
    line.dxf.update(id_code=0x11, end_x=1.0)
    output = tmp_path / "tables.dxf"

    result = tagdxf.write_dxf([line, vport], str(output), dxf_version=DxfVersion.R2000)
    text = output.read_text(encoding="cp1252")

    assert result.written_entities == 2
    assert text.index("TABLES") < text.index("VPORT") < text.index("ENTITIES") < text.index("LINE")
    assert "$DWGCODEPAGE\n  3\nANSI_1252\n" in text
    assert text.endswith("  0\nEOF\n")
    reread = tagdxf.read(str(output))
    (vport_back,) = reread.table_entries("VPORT")
    assert vport_back.dxf["view_height"] == 12.0


def test_write_dxf_r2007_is_utf8(tmp_path: Path) -> None:
    line = new_entity("LINE")
    line.dxf["layer"] = "Слой"
    output = tmp_path / "utf8.dxf"

    tagdxf.write_dxf([line], str(output), dxf_version="R2007")

    assert "Слой" in output.read_text(encoding="utf-8")
    assert "$DWGCODEPAGE" not in output.read_text(encoding="utf-8")


def test_legacy_target_escapes_characters_outside_codepage(tmp_path: Path) -> None:
    source = tmp_path / "piping.dxf"
    entity = dxf_text((0, "LINE"), (5, "60"), (8, "配管"), (10, "1.0"), (11, "2.0"))
    source.write_text(dxf_document(entity, acadver="AC1021"), encoding="utf-8")
    output = tmp_path / "piping_r2000.dxf"

    tagdxf.to_dxf(str(source), str(output), dxf_version="R2000")

    assert "\n\\U+914d\\U+7ba1\n" in output.read_text(encoding="cp1252")
    (line,) = tagdxf.read(str(output)).query("LINE")
    assert line.dxf["layer"] == "配管"


def test_value_with_line_break_is_skipped(tmp_path: Path) -> None:
    broken = new_entity("LINE")
    broken.dxf["layer"] = "A\n10"
    point = new_entity("POINT")
    output = tmp_path / "broken.dxf"

    result = tagdxf.write_dxf([broken, point], str(output), dxf_version="R12")

    assert result.skipped_by_type == {"LINE": 1}
    doc = tagdxf.read(str(output))
    assert [entity.dxftype for entity in doc.query()] == ["POINT"]
    assert doc.diagnostics == []


def test_written_r12_file_loads_in_ezdxf(tmp_path: Path) -> None:
    line = new_entity("LINE")
    line.dxf.update(id_code=0x2A, layer="WALLS", start_x=1.0, start_y=2.0, end_x=3.0, end_y=4.0)
    circle = new_entity("CIRCLE")
    circle.dxf.update(id_code=0x2B, center_x=5.0, center_y=5.0, radius=2.5, color=1)
    output = tmp_path / "r12.dxf"
    tagdxf.write_dxf([line, circle], str(output), dxf_version="R12")

    doc, _auditor = recover.readfile(str(output))
    msp = doc.modelspace()

    (ez_line,) = msp.query("LINE")
    assert ez_line.dxf.layer == "WALLS"
    assert tuple(ez_line.dxf.start) == (1.0, 2.0, 0.0)
    assert tuple(ez_line.dxf.end) == (3.0, 4.0, 0.0)
    (ez_circle,) = msp.query("CIRCLE")
    assert ez_circle.dxf.radius == 2.5
    assert ez_circle.dxf.color == 1


def test_ezdxf_file_is_readable(tmp_path: Path) -> None:
    source = ezdxf.new("R2000")
    msp = source.modelspace()
    msp.add_line((0, 0), (10, 5), dxfattribs={"layer": "EDGES"})
    msp.add_circle((1, 1), 4)
    msp.add_point((2, 3))
    path = tmp_path / "from_ezdxf.dxf"
    source.saveas(str(path))

    doc = tagdxf.read(str(path))

    assert doc.version is DxfVersion.R2000
    (line,) = doc.modelspace().query("LINE")
    assert line.dxf["layer"] == "EDGES"
    assert line.point("end") == (10.0, 5.0, 0.0)
    (circle,) = doc.modelspace().query("CIRCLE")
    assert circle.dxf["radius"] == 4.0
    assert len(list(doc.query("POINT"))) == 1
    assert doc.table_entries("VPORT")


def test_read_stream_and_write_use_same_tag_layout(tmp_path: Path) -> None:
    point = new_entity("POINT")
    point.dxf.update(id_code=0x50, location_x=0.25)
    output = tmp_path / "point.dxf"

    tagdxf.write_dxf([point], str(output), dxf_version="R12")
    doc = tagdxf.read_stream(io.StringIO(output.read_text(encoding="cp1252")))

    (back,) = doc.query("POINT")
    assert back.dxf["location_x"] == 0.25
    assert back.handle == 0x50
