"""
Manifest building: turns a source directory into the ordered list of files
that will go into an archive.

Traversal is depth-first in directory-listing order. Only regular files are
emitted; directories are recursed into unless excluded, so empty directories
never reach the archive.
"""

import os
import stat
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence


logger = logging.getLogger(__name__)

HIDDEN_OR_SYSTEM = stat.FILE_ATTRIBUTE_HIDDEN | stat.FILE_ATTRIBUTE_SYSTEM


class EnumerationError(Exception):
    """Raised when a directory cannot be listed."""
    pass


@dataclass(frozen=True)
class ExclusionPolicy:
    """
    Decides which filesystem entries are left out of a backup.

    An entry is excluded when it is a self/parent marker, carries the hidden
    or system attribute, or its name matches one of excluded_names
    (case-insensitive). Hosts without a hidden attribute can treat dotfiles
    as hidden instead.
    """

    excluded_names: Sequence[str] = ('desktop.ini',)
    excluded_attributes: int = HIDDEN_OR_SYSTEM
    dotfiles_hidden: bool = os.name != 'nt'

    def excludes(self, name: str, attributes: int = 0) -> bool:
        if name in ('.', '..'):
            return True
        if attributes & self.excluded_attributes:
            return True
        if self.dotfiles_hidden and name.startswith('.'):
            return True

        folded = name.lower()
        return any(folded == excluded.lower() for excluded in self.excluded_names)

    def excludes_path(self, path: str) -> bool:
        """
        Check a path against the policy using its current on-disk attributes.

        Raises:
            OSError: If the path cannot be stat'ed
        """
        st = os.stat(path, follow_symlinks=False)
        return self.excludes(os.path.basename(path), file_attributes(st))


def file_attributes(st: os.stat_result) -> int:
    """Windows attribute flags of a stat result (0 on other hosts)."""
    return getattr(st, 'st_file_attributes', 0)


def archive_name(name: str) -> str:
    """
    Return a name that can be stored in an archive.

    Undecodable bytes in host file names (surrogate escapes) are replaced
    with U+FFFD; valid names are returned unchanged.
    """
    return os.fsencode(name).decode('utf-8', 'replace')


@dataclass(frozen=True)
class ManifestEntry:
    source_path: str
    archive_path: str

    def rerooted(self, prefix: str) -> 'ManifestEntry':
        """Return a copy whose archive_path is nested under prefix."""
        return ManifestEntry(self.source_path, f"{prefix}/{self.archive_path}")


class Manifest:
    """Append-only ordered collection of ManifestEntry."""

    def __init__(self, entries: Optional[Sequence[ManifestEntry]] = None):
        self._entries: List[ManifestEntry] = list(entries or [])

    def append(self, entry: ManifestEntry):
        self._entries.append(entry)

    def extend(self, entries):
        self._entries.extend(entries)

    def archive_paths(self) -> List[str]:
        return [entry.archive_path for entry in self._entries]

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index) -> ManifestEntry:
        return self._entries[index]

    def __repr__(self):
        return f"<Manifest entries={len(self._entries)}>"


class ManifestBuilder:
    """
    Recursively walks a source directory and collects the files to archive.
    """

    def __init__(self, policy: Optional[ExclusionPolicy] = None, max_path_length: Optional[int] = None):
        """
        Initialize manifest builder.

        Args:
            policy: Exclusion rules applied to every entry (default policy if omitted)
            max_path_length: Longest absolute path accepted; longer paths are
                skipped with a warning. None disables the check.
        """
        self.policy = policy or ExclusionPolicy()
        self.max_path_length = max_path_length

    def build(self, base_dir: str) -> Manifest:
        """
        Build the manifest for base_dir.

        Args:
            base_dir: Root of the tree to back up

        Returns:
            Manifest with archive paths relative to base_dir, '/'-separated.
            An unreadable or missing base_dir gives an empty manifest.
        """
        manifest = Manifest()
        self._walk(os.path.abspath(base_dir), '', manifest)
        logger.debug(f"Collected {len(manifest)} files from {base_dir}")
        return manifest

    def _list_directory(self, directory: str) -> List[os.DirEntry]:
        """
        Read all entries of a directory.

        Raises:
            EnumerationError: If the directory cannot be listed
        """
        try:
            with os.scandir(directory) as it:
                return list(it)
        except OSError as e:
            raise EnumerationError(f"Cannot list directory {directory}: {e}") from e

    def _walk(self, directory: str, relative: str, manifest: Manifest):
        try:
            entries = self._list_directory(directory)
        except EnumerationError as e:
            # Unreadable directories count as empty
            logger.warning(str(e))
            return

        for entry in entries:
            try:
                attributes = file_attributes(entry.stat(follow_symlinks=False))
            except OSError as e:
                logger.debug(f"Skipping {entry.path}: {e}")
                continue

            if self.policy.excludes(entry.name, attributes):
                continue

            if self.max_path_length is not None and len(entry.path) > self.max_path_length:
                logger.warning(f"Skipping path longer than {self.max_path_length} characters: {entry.path}")
                continue

            name = archive_name(entry.name)
            if name != entry.name:
                logger.warning(f"Name is not valid UTF-8, archiving as {name!r}: {entry.path!r}")

            archive_path = f"{relative}/{name}" if relative else name

            # Symlinked directories are not followed
            if entry.is_dir(follow_symlinks=False):
                self._walk(entry.path, archive_path, manifest)
            elif entry.is_file():
                manifest.append(ManifestEntry(entry.path, archive_path))
