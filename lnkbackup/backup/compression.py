"""
Archive writing.

A manifest is streamed entry by entry into a ZIP archive sink. The exclusion
policy is checked again for every entry right before it is written, because
the tree may have changed since the manifest was built.
"""

import os
import logging
import zipfile
from dataclasses import dataclass
from typing import Callable, Optional

from .manifest import ExclusionPolicy, Manifest


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class CompressionError(Exception):
    """Raised when archive creation fails."""
    pass


class SinkOpenError(CompressionError):
    """Raised when an archive cannot be created or opened for writing."""
    pass


class ZipArchiveSink:
    """
    ZIP archive opened for writing.

    Existing files are truncated. Entry names are stored as given, with UTF-8
    encoding for non-ASCII names, and file contents are deflated.
    """

    def __init__(self, archive_path: str, compression: int = zipfile.ZIP_DEFLATED):
        """
        Create the archive file.

        Args:
            archive_path: Output archive path
            compression: zipfile compression constant

        Raises:
            SinkOpenError: If the file cannot be created
        """
        self.archive_path = archive_path
        try:
            # Pre-1980 modification times are clamped instead of rejected
            self._zip = zipfile.ZipFile(archive_path, 'w', compression, strict_timestamps=False)
        except OSError as e:
            raise SinkOpenError(f"Cannot open {archive_path}: {e}") from e

    def add_file(self, source_path: str, archive_path: str):
        """
        Stream a file into the archive.

        Raises:
            CompressionError: If the sink is already closed
            OSError: If the source file cannot be read
        """
        if self._zip is None:
            raise CompressionError(f"Archive already closed: {self.archive_path}")
        self._zip.write(source_path, archive_path)

    def close(self):
        """Finalize the archive. Safe to call more than once."""
        if self._zip is not None:
            zipf, self._zip = self._zip, None
            zipf.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


@dataclass(frozen=True)
class WriteReport:
    archive_path: str
    total: int
    written: int
    skipped: int
    failed: int


def progress_percent(index: int, total: int) -> int:
    """Truncated percentage of a 0-based index; never rounds up."""
    return (index * 100) // total


class ArchiveWriter:
    """
    Writes manifests into archives with per-entry progress reporting.
    """

    def __init__(self, policy: Optional[ExclusionPolicy] = None,
                 sink_factory: Callable[[str], ZipArchiveSink] = ZipArchiveSink):
        """
        Initialize archive writer.

        Args:
            policy: Exclusion rules re-checked at write time
            sink_factory: Callable opening an archive sink for a path
        """
        self.policy = policy or ExclusionPolicy()
        self.sink_factory = sink_factory

    @staticmethod
    def _report_progress(progress: ProgressCallback, index: int, total: int, entry_path: str):
        try:
            progress(index, total, entry_path)
        except Exception as e:
            logger.warning(f"Progress reporting failed for {entry_path!r}: {e}")

    def write(self, manifest: Manifest, archive_path: str,
              progress: Optional[ProgressCallback] = None) -> WriteReport:
        """
        Write every eligible manifest entry into a new archive.

        Args:
            manifest: Entries to archive, in order
            archive_path: Output archive path (truncated if present)
            progress: Optional callback (index, total, archive_path) invoked
                for each entry that passes the write-time checks; errors it
                raises are logged and do not stop the write

        Returns:
            WriteReport with counts for this archive

        Raises:
            SinkOpenError: If the archive cannot be created
        """
        total = len(manifest)
        written = skipped = failed = 0

        with self.sink_factory(archive_path) as sink:
            for index, entry in enumerate(manifest):
                # Step 1: re-check attributes and name on disk
                try:
                    excluded = self.policy.excludes_path(entry.source_path)
                except OSError as e:
                    logger.debug(f"Skipping {entry.source_path}: {e}")
                    skipped += 1
                    continue

                if excluded:
                    logger.debug(f"Skipping excluded entry {entry.source_path}")
                    skipped += 1
                    continue

                # Step 2: progress is informational only
                if progress is not None and total:
                    self._report_progress(progress, index, total, entry.archive_path)

                # Step 3: directories are never written
                if os.path.isdir(entry.source_path):
                    skipped += 1
                    continue

                # Step 4: stream file contents
                try:
                    sink.add_file(entry.source_path, entry.archive_path)
                    written += 1
                except (OSError, ValueError) as e:
                    # ValueError covers entry names the archive cannot encode
                    logger.warning(f"Failed to add {entry.source_path!r} to {archive_path}: {e}")
                    failed += 1

        logger.info(f"Archive finalized: {archive_path} ({written} of {total} entries written)")

        return WriteReport(
            archive_path=archive_path,
            total=total,
            written=written,
            skipped=skipped,
            failed=failed
        )
