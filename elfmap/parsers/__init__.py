"""ELF decoders: primitives, header, segments, sections, symbols, relocations."""
