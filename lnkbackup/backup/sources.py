"""
Shortcut discovery and resolution.

Supports:
- ShellLinkResolver: Windows .lnk shortcuts read through the COM shell-link object
- SymlinkResolver: symbolic links on any host

A resolver turns a shortcut into a ResolvedSource: the directory it points to
plus a display name derived from the shortcut's file name.
"""

import os
import sys
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from fnmatch import fnmatch
from typing import List, Sequence


logger = logging.getLogger(__name__)

DEFAULT_SUFFIXES = (' - Ярлык', ' - Shortcut')


class ResolutionError(Exception):
    """Raised when a shortcut cannot be resolved to a target directory."""
    pass


@dataclass(frozen=True)
class ResolvedSource:
    display_name: str
    target_directory: str


def display_name_for(link_path: str, suffixes: Sequence[str] = DEFAULT_SUFFIXES) -> str:
    """
    Derive the human-readable name of a shortcut.

    Takes the base name without its extension and strips the first matching
    localized "shortcut" suffix (case-insensitive). A name that does not end
    with any known suffix is kept whole.

    Args:
        link_path: Path to the shortcut file
        suffixes: Recognized suffix tokens, e.g. ' - Shortcut'

    Returns:
        Display name
    """
    name = os.path.splitext(os.path.basename(link_path))[0]
    folded = name.lower()

    for suffix in suffixes:
        if suffix and len(name) > len(suffix) and folded.endswith(suffix.lower()):
            return name[:-len(suffix)]

    return name


def discover_links(root: str, pattern: str = '*.lnk') -> List[str]:
    """
    List the shortcuts directly inside root.

    Args:
        root: Directory to scan (not recursive)
        pattern: Glob matched case-insensitively against entry names

    Returns:
        Absolute shortcut paths ordered by case-folded name. An unreadable
        root yields an empty list.
    """
    root = os.path.abspath(root)
    pattern = pattern.lower()

    try:
        with os.scandir(root) as it:
            names = [entry.name for entry in it if fnmatch(entry.name.lower(), pattern)]
    except OSError as e:
        logger.warning(f"Cannot list shortcuts in {root}: {e}")
        return []

    names.sort(key=str.casefold)
    return [os.path.join(root, name) for name in names]


class ShortcutResolver:
    """
    Base class for shortcut resolvers.

    Subclasses implement _target_of(); resolve() adds the display name.
    """

    def __init__(self, suffixes: Sequence[str] = DEFAULT_SUFFIXES):
        self.suffixes = tuple(suffixes)

    def _target_of(self, link_path: str) -> str:
        raise NotImplementedError

    def resolve(self, link_path: str) -> ResolvedSource:
        """
        Resolve a shortcut.

        Args:
            link_path: Path to the shortcut

        Returns:
            ResolvedSource with an absolute target directory

        Raises:
            ResolutionError: If no target path can be obtained
        """
        target = self._target_of(link_path)
        if not target:
            raise ResolutionError(f"Shortcut has no target path: {link_path}")

        return ResolvedSource(
            display_name=display_name_for(link_path, self.suffixes),
            target_directory=os.path.abspath(target)
        )


class SymlinkResolver(ShortcutResolver):
    """Resolves symbolic links to the path they point at."""

    def _target_of(self, link_path: str) -> str:
        try:
            target = os.readlink(link_path)
        except OSError as e:
            raise ResolutionError(f"Cannot read link {link_path}: {e}") from e

        # Relative targets are relative to the link's directory
        return os.path.join(os.path.dirname(os.path.abspath(link_path)), target)


@contextmanager
def _com_apartment(pythoncom):
    pythoncom.CoInitialize()
    try:
        yield
    finally:
        pythoncom.CoUninitialize()


class ShellLinkResolver(ShortcutResolver):
    """Reads Windows .lnk files through the COM IShellLink interface."""

    def _target_of(self, link_path: str) -> str:
        import pythoncom
        from win32com.shell import shell
        from win32com.storagecon import STGM_READ

        try:
            with _com_apartment(pythoncom):
                link = pythoncom.CoCreateInstance(
                    shell.CLSID_ShellLink,
                    None,
                    pythoncom.CLSCTX_INPROC_SERVER,
                    shell.IID_IShellLink
                )
                link.QueryInterface(pythoncom.IID_IPersistFile).Load(link_path, STGM_READ)
                target, _ = link.GetPath(shell.SLGP_RAWPATH)
        except pythoncom.com_error as e:
            raise ResolutionError(f"Cannot resolve shortcut {link_path}: {e}") from e

        return target


def create_resolver(resolver_type: str = 'auto', suffixes: Sequence[str] = DEFAULT_SUFFIXES) -> ShortcutResolver:
    """
    Factory function to create the appropriate shortcut resolver.

    Args:
        resolver_type: 'auto', 'shell' or 'symlink'
        suffixes: Recognized localized shortcut suffixes

    Returns:
        ShortcutResolver instance

    Raises:
        ValueError: If resolver_type is invalid
    """
    if resolver_type == 'auto':
        resolver_type = 'shell' if sys.platform == 'win32' else 'symlink'

    if resolver_type == 'shell':
        return ShellLinkResolver(suffixes)
    elif resolver_type == 'symlink':
        return SymlinkResolver(suffixes)
    else:
        raise ValueError(f"Invalid resolver type: {resolver_type}")
