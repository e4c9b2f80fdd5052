"""
elfmap Shared Module
====================

Configuration, structured logging and console utilities used by the
elfmap engine and command-line interface.
"""

from shared.config import ElfmapConfig, get_config

__all__ = ["ElfmapConfig", "get_config"]
