"""
Shared pytest fixtures for lnkbackup tests.

This module provides fixtures for:
- Source trees mixing eligible and excluded files
- Shortcut folders built from real symbolic links
- A fake resolver returning canned targets or forced errors
- Logger cleanup between tests
"""

import os
import sys
import logging

import pytest

from lnkbackup.backup.sources import ShortcutResolver, ResolutionError


class FakeResolver(ShortcutResolver):
    """
    Resolver returning canned targets keyed by shortcut file name.

    Names missing from targets raise ResolutionError.
    """

    def __init__(self, targets, suffixes=(' - Shortcut',)):
        super().__init__(suffixes)
        self.targets = targets
        self.calls = []

    def _target_of(self, link_path):
        self.calls.append(link_path)
        target = self.targets.get(os.path.basename(link_path))
        if target is None:
            raise ResolutionError(f"No canned target for {link_path}")
        return str(target)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Remove handlers added by configure_logging during a test."""
    yield
    logger = logging.getLogger('lnkbackup')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def source_tree(tmp_path):
    """
    Create a tree with three eligible files and several excluded ones.

    Eligible:
    - readme.txt
    - nested/notes.md
    - nested/deeper/data.bin

    Excluded:
    - desktop.ini, nested/Desktop.INI (sentinel name)
    - .hidden, .cache/cached.txt (hidden)
    - empty/ (no files)
    """
    root = tmp_path / 'source'
    root.mkdir()
    (root / 'readme.txt').write_text('top level')

    nested = root / 'nested'
    nested.mkdir()
    (nested / 'notes.md').write_text('nested notes')

    deeper = nested / 'deeper'
    deeper.mkdir()
    (deeper / 'data.bin').write_bytes(b'\x00\x01\x02\xff')

    # Files that must never be archived
    (root / 'desktop.ini').write_text('[.ShellClassInfo]')
    (nested / 'Desktop.INI').write_text('[.ShellClassInfo]')
    (root / '.hidden').write_text('secret')
    hidden_dir = root / '.cache'
    hidden_dir.mkdir()
    (hidden_dir / 'cached.txt').write_text('cached')

    (root / 'empty').mkdir()

    return root


@pytest.fixture
def shortcut_root(tmp_path):
    """
    Create a folder of shortcuts (symbolic links) to two data directories.

    - 'Docs - Shortcut.lnk' -> data/docs (report.txt, sub/draft.txt)
    - 'Photos.lnk' -> data/photos (cat.jpg)
    - notes.txt is not a shortcut and must be ignored
    """
    data = tmp_path / 'data'
    docs = data / 'docs'
    (docs / 'sub').mkdir(parents=True)
    (docs / 'report.txt').write_text('quarterly report')
    (docs / 'sub' / 'draft.txt').write_text('draft')
    (docs / 'desktop.ini').write_text('[.ShellClassInfo]')

    photos = data / 'photos'
    photos.mkdir()
    (photos / 'cat.jpg').write_bytes(b'\xff\xd8\xff\xe0cat')

    links = tmp_path / 'links'
    links.mkdir()
    (links / 'Docs - Shortcut.lnk').symlink_to(docs, target_is_directory=True)
    (links / 'Photos.lnk').symlink_to(photos, target_is_directory=True)
    (links / 'notes.txt').write_text('not a shortcut')

    return links


@pytest.fixture
def broken_link(shortcut_root):
    """Add a .lnk file that is not a link and cannot be resolved."""
    path = shortcut_root / 'Broken.lnk'
    path.write_bytes(b'L\x00\x00\x00corrupt')
    return path


@pytest.fixture
def fake_resolver():
    """Return the FakeResolver class for building canned resolvers."""
    return FakeResolver


@pytest.fixture
def undecodable_file():
    """
    Return a factory creating 'bad\\xff.txt' (not valid UTF-8) in a directory.

    Skips on hosts whose filesystem rejects such names.
    """
    def make(directory, data=b'undecodable'):
        if sys.platform == 'win32' or sys.getfilesystemencoding().lower() != 'utf-8':
            pytest.skip('requires a POSIX filesystem with UTF-8 file names')
        path = os.path.join(os.fsencode(str(directory)), b'bad\xff.txt')
        try:
            with open(path, 'wb') as f:
                f.write(data)
        except OSError:
            pytest.skip('filesystem rejects names that are not valid UTF-8')
        return os.fsdecode(path)

    return make
