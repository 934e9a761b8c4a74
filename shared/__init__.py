"""
ElfLens Shared Module
=====================

Configuration, logging, console, and scan-envelope models shared by the
ElfLens engine, CLI, and output layers.
"""

from shared.config import LensConfig, get_config

__all__ = ["LensConfig", "get_config"]
