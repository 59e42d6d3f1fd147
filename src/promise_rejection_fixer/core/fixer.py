"""Core fix pipeline.

This module provides the PromiseFixer class that locates ``.then`` chains in
JavaScript/TypeScript source, classifies their rejection handling, synthesizes
``.catch(<noop>)`` insertions for unhandled chains, applies them in one batch,
and audits the result.
"""

import logging
import os
import stat
from collections.abc import Iterable
from dataclasses import replace
from os import PathLike
from pathlib import Path

from promise_rejection_fixer.analysis.auditor import audit
from promise_rejection_fixer.analysis.classifier import HandlerClassifier
from promise_rejection_fixer.analysis.locator import locate_sites
from promise_rejection_fixer.analysis.synthesizer import FixSynthesizer
from promise_rejection_fixer.config.runtime_config import ApplicationMode, RuntimeConfig
from promise_rejection_fixer.core.document import Document
from promise_rejection_fixer.core.exceptions import (
    FixWriteError,
    NoActiveDocumentError,
    WorkspaceError,
)
from promise_rejection_fixer.core.models import FixResult, InsertionEdit, SiteVerdict
from promise_rejection_fixer.utils.file_io import atomic_write_text, create_backup
from promise_rejection_fixer.utils.path_utils import resolve_file_path

# Directories never descended into when expanding a directory argument
EXCLUDED_DIRS = frozenset({"node_modules", ".git", ".hg", ".svn"})


class PromiseFixer:
    """Main fixer class."""

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        workspace_root: str | PathLike[str] | None = None,
    ) -> None:
        """Create a PromiseFixer.

        Args:
            config: Runtime configuration. Defaults to RuntimeConfig.from_defaults().
            workspace_root: Directory relative paths are resolved against. If None,
                defaults to the current working directory.

        Raises:
            WorkspaceError: If workspace_root does not exist or is not a directory.
        """
        self.config = config or RuntimeConfig.from_defaults()
        try:
            workspace_path = Path(workspace_root) if workspace_root is not None else Path.cwd()
        except OSError as e:
            raise WorkspaceError(f"Failed to determine workspace root: {e}") from e

        resolved_path = workspace_path.resolve()
        try:
            path_stat = os.stat(resolved_path)
        except OSError as e:
            raise WorkspaceError(
                f"workspace_root does not exist or is inaccessible: {resolved_path}"
            ) from e
        if not stat.S_ISDIR(path_stat.st_mode):
            raise WorkspaceError(f"workspace_root must be a directory: {resolved_path}")

        self.workspace_root: Path = resolved_path
        self.logger = logging.getLogger(__name__)
        self.classifier = HandlerClassifier(catch_lookahead=self.config.catch_lookahead)
        self.synthesizer = FixSynthesizer(
            noop_handler=self.config.noop_handler,
            statement_terminator=self.config.statement_terminator,
        )

    def analyze(self, document: Document) -> list[SiteVerdict]:
        """Locate every chain site in the Document and classify its rejection handling."""
        verdicts = []
        for site in locate_sites(document):
            pattern = self.classifier.classify(document.text, site)
            self.logger.debug(
                f"Chain at {document.path or '<text>'}:{site.position.display()} -> {pattern.value}"
            )
            verdicts.append(SiteVerdict(site=site, pattern=pattern))
        return verdicts

    def synthesize_edits(
        self, document: Document, verdicts: Iterable[SiteVerdict]
    ) -> list[InsertionEdit]:
        """Synthesize an insertion for every unhandled site, against the same snapshot."""
        return [
            self.synthesizer.synthesize_fix(document.text, verdict.site, document)
            for verdict in verdicts
            if not verdict.handled
        ]

    @staticmethod
    def apply_edits(text: str, edits: Iterable[InsertionEdit]) -> str:
        """Apply insertions computed against ``text`` in one back-to-front pass.

        Edits are applied in descending offset order so pending offsets stay valid.
        Edits sharing an offset keep their given order in the result.

        Raises:
            ValueError: If an edit offset lies outside the text.
        """
        ordered = sorted(enumerate(edits), key=lambda item: (item[1].offset, item[0]), reverse=True)
        result = text
        for _, edit in ordered:
            if edit.offset < 0 or edit.offset > len(text):
                raise ValueError(f"Edit offset {edit.offset} out of range 0..{len(text)}")
            result = result[: edit.offset] + edit.text + result[edit.offset :]
        return result

    def fix_document(self, document: Document) -> FixResult:
        """Run locate, classify, synthesize, apply and audit over one Document.

        Returns:
            FixResult whose ``fixed_text`` holds the edited text. When no chain
            sites exist the text is returned unchanged and ``audit`` is None.
        """
        verdicts = self.analyze(document)
        if not verdicts:
            self.logger.info(f"No promise chains found in {document.path or '<text>'}")
            return FixResult(path=document.path, verdicts=[], edits=[], fixed_text=document.text)

        edits = self.synthesize_edits(document, verdicts)
        fixed_text = self.apply_edits(document.text, edits)

        audit_result = audit(document.text, len(edits))
        if audit_result.mismatch:
            self.logger.warning(f"{document.path or '<text>'}: {audit_result.message}")

        return FixResult(
            path=document.path,
            verdicts=verdicts,
            edits=edits,
            fixed_text=fixed_text,
            audit=audit_result,
        )

    def fix_text(self, text: str, path: str | None = None) -> FixResult:
        """Fix an in-memory text buffer. See :meth:`fix_document`."""
        return self.fix_document(Document(text, path=path))

    def load_document(self, path: str | Path) -> Document:
        """Read a source file into a Document.

        Raises:
            NoActiveDocumentError: If the path is missing, not a regular file, or
                cannot be decoded as UTF-8.
        """
        try:
            file_path = resolve_file_path(path, self.workspace_root)
        except ValueError as e:
            raise NoActiveDocumentError(f"Invalid document path '{path}': {e}") from e

        if not file_path.is_file():
            raise NoActiveDocumentError(f"No document found at {file_path}")

        try:
            with open(file_path, encoding="utf-8", newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise NoActiveDocumentError(f"Cannot read document {file_path}: {e}") from e

        return Document(text, path=str(file_path))

    def fix_file(self, path: str | Path, dry_run: bool | None = None) -> FixResult:
        """Fix a single source file in place.

        Args:
            path: File to fix.
            dry_run: When True, compute edits without writing. None follows the
                configured mode.

        Raises:
            NoActiveDocumentError: If the file cannot be read.
            OSError: If the backup or the atomic write fails.
        """
        return self._fix_loaded(self.load_document(path), dry_run)

    def fix_files(self, paths: Iterable[str | Path], dry_run: bool | None = None) -> list[FixResult]:
        """Fix several files, reading all of them before modifying any.

        Raises:
            NoActiveDocumentError: If any file cannot be read; no file is modified.
            FixWriteError: If a backup or write fails. Files before it in the batch
                stay rewritten and are listed in the error's ``completed`` results.
        """
        documents = [self.load_document(path) for path in paths]
        results: list[FixResult] = []
        for document in documents:
            try:
                results.append(self._fix_loaded(document, dry_run))
            except OSError as e:
                written = sum(1 for result in results if result.written)
                raise FixWriteError(
                    f"Failed to write {document.path} ({written} file(s) already rewritten): {e}",
                    path=str(document.path),
                    completed=results,
                ) from e
        return results

    def _fix_loaded(self, document: Document, dry_run: bool | None) -> FixResult:
        if dry_run is None:
            dry_run = self.config.mode == ApplicationMode.DRY_RUN

        result = self.fix_document(document)
        if not result.edits or dry_run or document.path is None:
            return result

        file_path = Path(document.path)
        backup_path = None
        if self.config.create_backup:
            backup_path = str(create_backup(file_path))
            self.logger.debug(f"Backed up {file_path} to {backup_path}")

        atomic_write_text(file_path, result.fixed_text)
        self.logger.info(
            f"Inserted {len(result.edits)} rejection handler(s) into {file_path} "
            f"({result.handled_count} of {len(result.verdicts)} chains already handled)"
        )
        return replace(result, written=True, backup_path=backup_path)

    def is_source_file(self, path: Path) -> bool:
        """Return True if the path's suffix is one of the configured extensions."""
        return path.suffix.lower() in self.config.extensions

    def collect_source_files(self, paths: Iterable[str | Path]) -> list[Path]:
        """Expand file and directory arguments into a sorted, de-duplicated file list.

        Files named explicitly are always included. Directories are walked
        recursively for files with a configured extension, skipping
        ``EXCLUDED_DIRS`` and hidden directories.

        Raises:
            NoActiveDocumentError: If a path does not exist.
        """
        collected: set[Path] = set()
        for path in paths:
            resolved = resolve_file_path(path, self.workspace_root)
            if resolved.is_file():
                collected.add(resolved)
            elif resolved.is_dir():
                collected.update(self._walk_directory(resolved))
            else:
                raise NoActiveDocumentError(f"No document found at {resolved}")
        return sorted(collected)

    def _walk_directory(self, directory: Path) -> list[Path]:
        found = []
        for root, dirnames, filenames in os.walk(directory):
            dirnames[:] = [
                name for name in dirnames if name not in EXCLUDED_DIRS and not name.startswith(".")
            ]
            for filename in filenames:
                candidate = Path(root) / filename
                if self.is_source_file(candidate):
                    found.append(candidate)
        return found
