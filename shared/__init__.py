"""
DexDeps Shared Module
=====================

Configuration, structured logging and console helpers used by every
DexDeps component.
"""

from shared.config import DepsConfig
from shared.console import DepsConsole
from shared.logger import DepsLogger

__all__ = ["DepsConfig", "DepsConsole", "DepsLogger"]
