"""Component source scanner."""

import logging
import os
from pathlib import Path
from typing import List, Set, Tuple
from pathspec import PathSpec
from pathspec.patterns.gitwildmatch import GitWildMatchPattern
from ..config import Config
from ..errors import ScanRootError

logger = logging.getLogger(__name__)


class SourceScanner:
    """Finds component source files under a root directory."""

    def __init__(self, config: Config):
        """Initialize scanner with configuration.

        Args:
            config: Run configuration with extensions, ignored_dirs, max_file_size
        """
        self.config = config
        self.ignored_dirs: Set[str] = set(config.ignored_dirs)
        self.extensions: Set[str] = {ext.lower() for ext in config.extensions}

    def scan(self, root: Path) -> List[Path]:
        """Collect candidate files under ``root``.

        Args:
            root: Directory to scan

        Returns:
            Sorted list of absolute file paths

        Raises:
            ScanRootError: If the root is missing, not a directory or unreadable
        """
        root = self._check_root(root)
        gitignore_spec = self._load_gitignore(root) if self.config.respect_gitignore else None

        files: List[Path] = []
        visited: Set[Tuple[int, int]] = set()

        def _on_error(error: OSError) -> None:
            logger.warning("Skipping %s: %s", error.filename, error.strerror or error)

        for current, dirs, filenames in os.walk(root, onerror=_on_error, followlinks=True):
            current_path = Path(current)
            try:
                stat = current_path.stat()
            except OSError as e:
                logger.warning("Skipping %s: %s", current_path, e)
                dirs[:] = []
                continue
            identity = (stat.st_dev, stat.st_ino)
            if identity in visited:
                logger.warning("Skipping %s: symlink loop", current_path)
                dirs[:] = []
                continue
            visited.add(identity)

            # Prune directories before descending further
            dirs[:] = sorted(
                directory
                for directory in dirs
                if not self._should_ignore(current_path / directory, root, gitignore_spec)
            )

            for filename in filenames:
                file_path = current_path / filename
                if file_path.suffix.lower() not in self.extensions:
                    continue
                if self._should_ignore(file_path, root, gitignore_spec):
                    continue
                files.append(file_path)

        logger.debug("Found %d source files under %s", len(files), root)
        return sorted(files)

    def _check_root(self, root: Path) -> Path:
        root = Path(root).resolve()
        if not root.exists():
            raise ScanRootError(f"Scan root does not exist: {root}")
        if not root.is_dir():
            raise ScanRootError(f"Scan root is not a directory: {root}")
        if not os.access(root, os.R_OK | os.X_OK):
            raise ScanRootError(f"Scan root is not readable: {root}")
        return root

    def _should_ignore(
        self, path: Path, root: Path, gitignore_spec: PathSpec | None = None
    ) -> bool:
        """Check if path should be ignored.

        Args:
            path: Path to check
            root: Scan root

        Returns:
            True if path should be ignored
        """
        # Check if any part of the path is in ignored_dirs
        rel_path = path.relative_to(root)
        for part in rel_path.parts:
            if part in self.ignored_dirs:
                return True

        # Respect .gitignore patterns when available
        if gitignore_spec:
            candidate = rel_path.as_posix()
            if path.is_dir():
                candidate += "/"
            if gitignore_spec.match_file(candidate):
                return True

        # Check file size limit for files
        if path.is_file():
            try:
                if path.stat().st_size > self.config.max_file_size:
                    logger.debug("Skipping %s: larger than %d bytes", rel_path, self.config.max_file_size)
                    return True
            except OSError:
                return True

        return False

    def _load_gitignore(self, root: Path) -> PathSpec | None:
        """Load .gitignore patterns if present."""
        gitignore_path = root / ".gitignore"
        if not gitignore_path.exists():
            return None

        try:
            patterns = gitignore_path.read_text().splitlines()
        except OSError as e:
            logger.warning("Could not read %s: %s", gitignore_path, e)
            return None

        if not patterns:
            return None

        return PathSpec.from_lines(GitWildMatchPattern, patterns)
