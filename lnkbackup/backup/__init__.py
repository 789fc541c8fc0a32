"""
Backup module for lnkbackup.

This module handles the core backup functionality including:
- Shortcut discovery and resolution
- Manifest building with exclusion rules
- Archive writing with progress reporting
- Orchestration of merged and split runs
"""

from .sources import (
    ResolvedSource,
    ResolutionError,
    ShortcutResolver,
    ShellLinkResolver,
    SymlinkResolver,
    create_resolver,
    discover_links,
    display_name_for,
)
from .manifest import ExclusionPolicy, EnumerationError, Manifest, ManifestBuilder, ManifestEntry
from .compression import ArchiveWriter, CompressionError, SinkOpenError, WriteReport, ZipArchiveSink
from .executor import (
    BackupError,
    BackupOrchestrator,
    NothingToArchiveError,
    RunResult,
    RunStatus,
    SetupError,
)

__all__ = [
    'ResolvedSource',
    'ResolutionError',
    'ShortcutResolver',
    'ShellLinkResolver',
    'SymlinkResolver',
    'create_resolver',
    'discover_links',
    'display_name_for',
    'ExclusionPolicy',
    'EnumerationError',
    'Manifest',
    'ManifestBuilder',
    'ManifestEntry',
    'ArchiveWriter',
    'CompressionError',
    'SinkOpenError',
    'WriteReport',
    'ZipArchiveSink',
    'BackupError',
    'BackupOrchestrator',
    'NothingToArchiveError',
    'RunResult',
    'RunStatus',
    'SetupError',
]
