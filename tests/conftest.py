"""Shared fixtures for the elfmap test-suite."""

from __future__ import annotations

import pytest

from shared.config import ElfmapConfig
from shared.logger import ElfmapLogger

from elfmap.core.models import ElfMap
from elfmap.parsers.elf_parser import ELFParser

from elf_builder import BuiltElf, build_relocatable_object


@pytest.fixture
def quiet_logger() -> ElfmapLogger:
    return ElfmapLogger("test", console_output=False)


@pytest.fixture
def default_config() -> ElfmapConfig:
    return ElfmapConfig()


@pytest.fixture
def hello_object() -> BuiltElf:
    """64-bit little-endian amd64 relocatable object with a ``.rela.text``."""
    return build_relocatable_object(64, "little")


@pytest.fixture
def hello_map(hello_object: BuiltElf) -> ElfMap:
    result = ELFParser(hello_object.data).parse()
    assert isinstance(result, ElfMap), result
    return result


@pytest.fixture
def hello_path(tmp_path, hello_object: BuiltElf):
    path = tmp_path / "hello.o"
    path.write_bytes(hello_object.data)
    return path
