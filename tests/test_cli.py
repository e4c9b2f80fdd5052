"""Tests for the ``elfmap`` command."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from elfmap.cli import EXIT_INCONSISTENT, EXIT_NOT_DECODABLE, elfmap_cli

from elf_builder import build_relocatable_object


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_display(runner, hello_path):
    result = runner.invoke(elfmap_cli, [str(hello_path)])
    assert result.exit_code == 0, result.output
    assert "ELF Header" in result.output
    assert "Members" in result.output
    assert "Areas" in result.output


def test_no_areas_and_limit(runner, hello_path):
    result = runner.invoke(elfmap_cli, [str(hello_path), "--no-areas", "--limit", "3"])
    assert result.exit_code == 0, result.output
    assert "Showing 3 of" in result.output
    assert "Areas" not in result.output


def test_json_stdout(runner, hello_path):
    result = runner.invoke(elfmap_cli, [str(hello_path), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["status"] == "ok"
    assert [r["table"] for r in data["relocations"]] == [".rela.text"] * 3


def test_output_file(runner, hello_path, tmp_path):
    out = tmp_path / "map.json"
    result = runner.invoke(elfmap_cli, [str(hello_path), "--output", str(out)])
    assert result.exit_code == 0, result.output
    assert "JSON report saved" in result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["status"] == "ok"


def test_section_option(runner, tmp_path):
    path = tmp_path / "hello.o"
    path.write_bytes(build_relocatable_object(64, "little").data)
    out = tmp_path / "map.json"
    result = runner.invoke(elfmap_cli, [str(path), "-s", ".data", "-o", str(out), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["relocations"] == []


def test_config_option(runner, hello_path, tmp_path):
    config = tmp_path / "elfmap.toml"
    config.write_text('[parser]\naffected_sections = [".data"]\n', encoding="utf-8")
    out = tmp_path / "map.json"
    result = runner.invoke(
        elfmap_cli, [str(hello_path), "--config", str(config), "-o", str(out), "--json"],
    )
    assert result.exit_code == 0, result.output
    assert json.loads(out.read_text(encoding="utf-8"))["relocations"] == []


def test_not_elf_exit_code(runner, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"hello world\n")
    out = tmp_path / "map.json"
    result = runner.invoke(elfmap_cli, [str(path), "-o", str(out)])
    assert result.exit_code == EXIT_NOT_DECODABLE
    assert "Not an ELF file" in result.output
    assert json.loads(out.read_text(encoding="utf-8"))["status"] == "failed"


def test_inconsistent_tables_exit_code(runner, tmp_path):
    path = tmp_path / "broken.o"
    path.write_bytes(build_relocatable_object(with_strtab=False).data)
    result = runner.invoke(elfmap_cli, [str(path)])
    assert result.exit_code == EXIT_INCONSISTENT
    assert "no .strtab" in result.output


def test_missing_path(runner, tmp_path):
    result = runner.invoke(elfmap_cli, [str(tmp_path / "missing.o")])
    assert result.exit_code != 0
