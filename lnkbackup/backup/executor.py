"""
Backup orchestrator - runs a whole backup in one of two modes.

Merged mode:
1. Discover shortcuts in the source root
2. Resolve each one (unresolvable shortcuts are skipped)
3. Build a manifest per target, nested under the shortcut's display name
4. Write the combined manifest to a single archive

Split mode:
1. Ensure the output directory exists
2. Discover shortcuts in the source root
3. For each shortcut: resolve, build, write <display name>.<ext>
"""

import os
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Set

from .sources import ShortcutResolver, ResolutionError, discover_links
from .manifest import Manifest, ManifestBuilder
from .compression import ArchiveWriter, ProgressCallback, SinkOpenError, WriteReport


logger = logging.getLogger(__name__)

COLLISION_POLICIES = ('rename', 'overwrite')


class BackupError(Exception):
    """Base class for errors that end a backup run."""
    pass


class SetupError(BackupError):
    """Raised when the output location cannot be prepared."""
    pass


class NothingToArchiveError(BackupError):
    """Raised when no shortcuts or files are found to back up."""
    pass


class RunStatus(Enum):
    SUCCESS = 'success'
    NOTHING_TO_ARCHIVE = 'nothing_to_archive'
    FATAL_SETUP_FAILURE = 'fatal_setup_failure'

    @property
    def exit_code(self) -> int:
        return 0 if self is RunStatus.SUCCESS else 1


@dataclass
class RunResult:
    status: RunStatus
    reports: List[WriteReport] = field(default_factory=list)
    skipped_links: List[str] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return self.status.exit_code


def unique_name(name: str, taken: Set[str]) -> str:
    """
    Return name, or name with a ' (N)' suffix if it was already taken.

    Comparison is case-insensitive. The returned name is added to taken.
    """
    candidate = name
    counter = 2
    while candidate.lower() in taken:
        candidate = f"{name} ({counter})"
        counter += 1
    taken.add(candidate.lower())
    return candidate


class BackupOrchestrator:
    """
    Composes shortcut resolution, manifest building and archive writing.
    """

    def __init__(
        self,
        resolver: ShortcutResolver,
        builder: Optional[ManifestBuilder] = None,
        writer: Optional[ArchiveWriter] = None,
        link_pattern: str = '*.lnk',
        archive_extension: str = 'zip',
        collision_policy: str = 'rename',
        progress: Optional[ProgressCallback] = None,
        on_archive: Optional[Callable[[WriteReport], None]] = None
    ):
        """
        Initialize backup orchestrator.

        Args:
            resolver: Turns shortcut paths into ResolvedSource values
            builder: Manifest builder (default exclusion rules if omitted)
            writer: Archive writer (ZIP sink if omitted)
            link_pattern: Glob used to discover shortcuts in the source root
            archive_extension: Extension of split-mode archives, without dot
            collision_policy: 'rename' or 'overwrite' for clashing display names
            progress: Per-entry callback passed to the writer
            on_archive: Called with the WriteReport of every finished archive

        Raises:
            ValueError: If collision_policy is invalid
        """
        if collision_policy not in COLLISION_POLICIES:
            raise ValueError(
                f"Invalid collision policy: {collision_policy}. "
                f"Valid options: {list(COLLISION_POLICIES)}"
            )

        self.resolver = resolver
        self.builder = builder or ManifestBuilder()
        self.writer = writer or ArchiveWriter()
        self.link_pattern = link_pattern
        self.archive_extension = archive_extension
        self.collision_policy = collision_policy
        self.progress = progress
        self.on_archive = on_archive

    def run(self, source_dir: str, output: str, split: bool = False) -> RunResult:
        """
        Execute a backup and map terminal errors to a run status.

        Args:
            source_dir: Directory holding the shortcuts
            output: Archive path (merged) or output directory (split)
            split: Produce one archive per shortcut

        Returns:
            RunResult with status, per-archive reports and skipped shortcuts
        """
        result = RunResult(status=RunStatus.SUCCESS)

        try:
            if split:
                self._run_split(source_dir, output, result)
            else:
                self._run_merged(source_dir, output, result)
        except NothingToArchiveError as e:
            result.status = RunStatus.NOTHING_TO_ARCHIVE
            result.message = str(e)
        except (SetupError, SinkOpenError) as e:
            logger.error(str(e))
            result.status = RunStatus.FATAL_SETUP_FAILURE
            result.message = str(e)

        return result

    def run_merged(self, source_dir: str, output_archive: str) -> RunResult:
        return self.run(source_dir, output_archive, split=False)

    def run_split(self, source_dir: str, output_dir: str) -> RunResult:
        return self.run(source_dir, output_dir, split=True)

    def _resolve(self, link_path: str, result: RunResult):
        try:
            return self.resolver.resolve(link_path)
        except ResolutionError as e:
            logger.warning(f"Skipping shortcut {link_path}: {e}")
            result.skipped_links.append(link_path)
            return None

    def _name_for(self, display_name: str, taken: Set[str]) -> str:
        if self.collision_policy == 'overwrite':
            return display_name
        return unique_name(display_name, taken)

    def _write(self, manifest: Manifest, archive_path: str, result: RunResult):
        report = self.writer.write(manifest, archive_path, self.progress)
        result.reports.append(report)
        if self.on_archive is not None:
            self.on_archive(report)
        return report

    def _run_merged(self, source_dir: str, output_archive: str, result: RunResult):
        combined = Manifest()
        taken = set()

        for link_path in discover_links(source_dir, self.link_pattern):
            source = self._resolve(link_path, result)
            if source is None:
                continue

            manifest = self.builder.build(source.target_directory)
            if not len(manifest):
                logger.info(f"No files under {source.target_directory} ({link_path})")
                continue

            # Folders inside one archive are always kept apart
            prefix = unique_name(source.display_name, taken)
            combined.extend(entry.rerooted(prefix) for entry in manifest)

        if not len(combined):
            raise NothingToArchiveError("No files to archive.")

        self._write(combined, output_archive, result)

    def _run_split(self, source_dir: str, output_dir: str, result: RunResult):
        try:
            os.makedirs(output_dir, exist_ok=True)
        except OSError as e:
            raise SetupError(f"Cannot create or access output dir {output_dir}: {e}") from e

        links = discover_links(source_dir, self.link_pattern)
        if not links:
            raise NothingToArchiveError(f"No shortcuts found in {source_dir}")

        taken = set()
        for link_path in links:
            source = self._resolve(link_path, result)
            if source is None:
                continue

            manifest = self.builder.build(source.target_directory)
            name = self._name_for(source.display_name, taken)
            archive_path = os.path.join(output_dir, f"{name}.{self.archive_extension}")

            try:
                self._write(manifest, archive_path, result)
            except SinkOpenError as e:
                logger.warning(f"Skipping {link_path}: {e}")
                result.skipped_links.append(link_path)
