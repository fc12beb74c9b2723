"""Directory scan producing a :class:`Breakdown`."""
import os
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from rich.console import Console

from .errors import DocumentParseError, TraversalError, ValueFileError
from .extractor import classify
from .models import Breakdown
from .parser import TerraformParser
from .tfvars import file_extension, is_value_file, parse_value_file

TF_SUFFIX = '.tf'


def walk_files(root: str, exclude_dirs: Iterable[str] = ()) -> Iterator[str]:
    """Yield every file under `root`, depth first, entries sorted by name.

    Symlinked directories are not followed. Directories named in
    `exclude_dirs` are skipped.
    """
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        raise TraversalError(f'Cannot list {root}: {e}') from e

    for entry in entries:
        path = os.path.normpath(os.path.join(root, entry.name))
        if entry.is_dir(follow_symlinks=False):
            if entry.name not in exclude_dirs:
                yield from walk_files(path, exclude_dirs)
        else:
            yield path


class TerraformAnalyzer:
    """Scan a directory tree of Terraform files into one breakdown."""

    def __init__(self, root_path: Union[str, Path], exclude_dirs: Iterable[str] = (),
                 verbose: bool = False, console: Optional[Console] = None):
        self.root_path = str(root_path)
        self.exclude_dirs = frozenset(exclude_dirs)
        self.verbose = verbose
        self.console = console or Console(stderr=True)
        self.parser = TerraformParser()

    def _log(self, message: str, style: Optional[str] = None):
        if self.verbose:
            self.console.print(message, style=style, markup=False, highlight=False)

    def _warn(self, path: str, error: Exception):
        self._log(f'Warning: Error parsing {path}: {error}', style='yellow')

    def analyze_file(self, path: str, breakdown: Breakdown):
        """Add one file's contents to `breakdown`; files that fail to parse are skipped."""
        if is_value_file(path):
            try:
                parse_value_file(path, breakdown, self.parser)
            except ValueFileError as e:
                self._warn(path, e)
                return
            self._log(f'Parsed tfvars: {path}')
            return

        if file_extension(os.path.basename(path)) != TF_SUFFIX:
            return

        try:
            body = self.parser.parse_file(path)
        except DocumentParseError as e:
            self._warn(path, e)
            return
        self._log(f'Parsed: {path}')
        classify(body, path, breakdown)

    def analyze(self) -> Breakdown:
        """Perform the complete scan. Raises TraversalError if the root is unusable."""
        if not os.path.isdir(self.root_path):
            raise TraversalError(f'{self.root_path} is not a valid directory')

        breakdown = Breakdown()
        for path in walk_files(self.root_path, self.exclude_dirs):
            self.analyze_file(path, breakdown)
        return breakdown


def build_breakdown(root_path: Union[str, Path], **kwargs) -> Breakdown:
    """Scan `root_path` and return everything found in it."""
    return TerraformAnalyzer(root_path, **kwargs).analyze()
