"""Tests for the section header decoder."""

from __future__ import annotations

import pytest

from elfmap.core.errors import ErrorKind
from elfmap.core.models import ElfMap, ParseFailure
from elfmap.parsers.elf_parser import parse_elf
from elfmap.parsers.sections import find_section

from elf_builder import (
    EM_386,
    SHT_PROGBITS,
    SectionSpec,
    build_elf,
    build_relocatable_object,
    patch_section_count,
)


def _section_members(elf_map: ElfMap, index: int):
    prefix = f"Section [{index}] "
    return [m for m in elf_map.members if m.label.startswith(prefix)]


def test_section_values(hello_object, hello_map):
    text = hello_map.section_named(".text")
    assert text is not None
    assert text.index == 1
    assert text.type == SHT_PROGBITS
    assert text.flags == 0x6
    assert text.file_offset == hello_object.offset_of(".text")
    assert text.size == 32
    assert text.alignment == 16

    symtab = hello_map.section_named(".symtab")
    assert symtab.entry_size == 24
    assert symtab.link == 4
    assert symtab.info == 3

    assert hello_map.section_named(".missing") is None
    assert find_section(hello_map.sections, ".data").index == 2


def test_64_bit_field_widths(hello_map):
    widths = [m.length for m in _section_members(hello_map, 1)]
    assert widths == [4, 4, 8, 8, 8, 8, 4, 4, 8, 8]


def test_32_bit_field_widths():
    built = build_relocatable_object(32, "big")
    elf_map = parse_elf(built.data)
    assert isinstance(elf_map, ElfMap)
    widths = [m.length for m in _section_members(elf_map, 1)]
    assert widths == [4] * 10
    assert elf_map.section_named(".text").file_offset == built.offset_of(".text")


def test_name_member_links_to_string(hello_object, hello_map):
    name = _section_members(hello_map, 1)[0]
    offset = hello_object.name_offsets[".text"]
    assert name.label == f'Section [1] name offset (0x{offset:x}, ".text")'
    assert name.file_ref == hello_object.offset_of(".shstrtab") + offset


def test_type_and_flag_labels(hello_map):
    labels = [m.label for m in _section_members(hello_map, 1)]
    assert "Section [1] type (1: progbits)" in labels
    assert "Section [1] flags (6: alloc|execinstr)" in labels

    data_labels = [m.label for m in _section_members(hello_map, 2)]
    assert "Section [2] flags (3: write|alloc)" in data_labels

    null_labels = [m.label for m in _section_members(hello_map, 0)]
    assert "Section [0] type (0: null)" in null_labels
    assert "Section [0] flags (0: none)" in null_labels

    rela_labels = [m.label for m in _section_members(hello_map, 5)]
    assert "Section [5] type (4: rela)" in rela_labels
    assert "Section [5] flags (64: unknown)" in rela_labels


def test_offset_and_address_references(hello_object, hello_map):
    members = {m.label: m for m in _section_members(hello_map, 1)}
    assert members["Section [1] offset in file"].file_ref == hello_object.offset_of(".text")
    assert members["Section [1] address"].mem_ref == 0


def test_areas(hello_object, hello_map):
    labels = {a.label: a for a in hello_map.areas}
    count = len(hello_map.sections)
    table = labels["Section header table"]
    assert table.offset == hello_object.section_table_offset
    assert table.length == count * 64
    for i in range(count):
        assert f"Section [{i}] header" in labels

    text = labels['Section [1] ".text"']
    assert text.offset == hello_object.offset_of(".text")
    assert text.length == 32


def test_content_area_only_for_nonzero_offset(hello_map):
    content = [a for a in hello_map.areas if a.label.startswith("Section [") and '"' in a.label]
    indices = {int(a.label.split("[")[1].split("]")[0]) for a in content}
    assert 0 not in indices
    assert indices == {s.index for s in hello_map.sections if s.file_offset != 0}


@pytest.mark.parametrize("bits", [32, 64])
def test_unknown_section_type(bits):
    built = build_elf(
        bits=bits,
        machine=EM_386,
        sections=[SectionSpec(".note.gnu", type=0x6FFFFFF6, data=b"\x00" * 4)],
    )
    elf_map = parse_elf(built.data)
    assert isinstance(elf_map, ElfMap)
    labels = [m.label for m in _section_members(elf_map, 1)]
    assert f"Section [1] type ({0x6FFFFFF6}: unknown)" in labels


def test_section_count_past_end_of_file():
    built = build_relocatable_object()
    result = parse_elf(patch_section_count(built, 0xFFFF))
    assert isinstance(result, ParseFailure)
    assert result.kind is ErrorKind.TRUNCATED
    assert result.offset == built.section_table_offset
