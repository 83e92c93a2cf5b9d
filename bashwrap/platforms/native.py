# bashwrap/platforms/native.py
from __future__ import annotations
from dataclasses import dataclass

from bashwrap.platforms.platform import Platform, PlatformRegistry
from bashwrap.wrapper.mods import EMPTY, Modification


@PlatformRegistry.register
@dataclass
class NativePlatform(Platform):
    """Run the main script directly on the host."""

    TYPE = "native"

    def modifications(self, component) -> Modification:
        return EMPTY
