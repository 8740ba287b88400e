"""Rule source: locate and read policy rule files from disk."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

logger = logging.getLogger(__name__)

# File suffixes recognized as rule sources
RULE_FILE_SUFFIXES = (".yaml", ".yml")

# Logical names ending with this marker (before the suffix) are test modules
TEST_MODULE_SUFFIX = "_test"


@dataclass(frozen=True)
class RuleFile:
    """A single rule source file.

    Attributes:
        name: Logical file name (e.g. ``node_auto_upgrade.yaml``).
        path: Path or identifier unique across the batch; used as the module key.
        content: Raw source text.
    """

    name: str
    path: str
    content: str

    @property
    def is_test(self) -> bool:
        """True if the logical name follows the test module convention."""
        return Path(self.name).stem.endswith(TEST_MODULE_SUFFIX)


def read_policy_dir(directory: Path) -> List[RuleFile]:
    """Read every rule file below a directory.

    Files are returned sorted by relative path so compilation order is stable.

    Args:
        directory: Root directory holding rule files (searched recursively)

    Returns:
        List of RuleFile objects

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Policy directory not found: {directory}")

    files = []
    for path in sorted(directory.rglob("*")):
        if not path.is_file() or path.suffix not in RULE_FILE_SUFFIXES:
            continue
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
        files.append(RuleFile(
            name=path.name,
            path=path.relative_to(directory).as_posix(),
            content=content,
        ))

    logger.debug(f"Read {len(files)} rule files from {directory}")
    return files


def read_policy_dirs(directories: Iterable[Path]) -> List[RuleFile]:
    """Read rule files from several directories.

    Paths are prefixed with the directory name so that files with the same
    relative path in different directories stay distinct.
    """
    files = []
    for directory in directories:
        directory = Path(directory)
        for rule_file in read_policy_dir(directory):
            files.append(RuleFile(
                name=rule_file.name,
                path=f"{directory.as_posix()}/{rule_file.path}",
                content=rule_file.content,
            ))
    return files
