"""
Ignore-rule handling for mdconcat.

``.gitignore`` files are discovered under every input root and compiled
with :mod:`pathspec` into groups anchored at the directory that declared
them. Matching is a pure function of a path and the compiled rules, so the
precedence logic can be exercised without touching the filesystem:

* the nearest declaring directory with a matching pattern decides,
* within one file the last pattern matching the path itself wins, and only
  then one matching a parent directory,
* a ``!`` pattern re-includes what an earlier pattern excluded.

Supplementary ignore files act like git's ``core.excludesFile``: they are
matched relative to each input root and only decide when no ``.gitignore``
on the path did.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pathspec

from .errors import ConfigurationError, IgnoreRuleParseWarning

logger = logging.getLogger(__name__)

GITIGNORE_NAME = ".gitignore"


@dataclass(frozen=True)
class IgnoreRuleGroup:
    """Patterns from one ignore file, anchored at *base*."""

    base: Path
    source: Path
    spec: pathspec.GitIgnoreSpec


@dataclass(frozen=True)
class IgnoreRuleSet:
    """Compiled groups, nearest directory first, plus root-relative globals."""

    groups: Tuple[IgnoreRuleGroup, ...] = ()
    global_groups: Tuple[IgnoreRuleGroup, ...] = ()

    def __len__(self) -> int:
        return len(self.groups) + len(self.global_groups)


# Loading

def load_ignore_file(path: Path) -> pathspec.GitIgnoreSpec:
    """Compile one gitignore-format file, raising IgnoreRuleParseWarning on failure."""
    try:
        with path.open("r", encoding="utf-8") as fh:
            lines = [line.rstrip("\r\n") for line in fh]
        return pathspec.GitIgnoreSpec.from_lines(lines)
    except (OSError, ValueError) as e:
        # ValueError covers both UnicodeDecodeError and GitWildMatchPatternError
        raise IgnoreRuleParseWarning(f"Could not parse ignore file '{path}': {e}") from e


def discover_ignore_files(roots: Iterable[Path], exclude_dirs=frozenset()) -> List[Path]:
    """Find every ``.gitignore`` under *roots*, skipping excluded directory names."""
    found: List[Path] = []
    for root in roots:
        for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
            dirnames[:] = sorted(d for d in dirnames if d not in exclude_dirs)
            if GITIGNORE_NAME in filenames:
                found.append(Path(dirpath) / GITIGNORE_NAME)
    return found


def compile_ignore_rules(
    roots: Iterable[Path],
    extra_files: Iterable[Path] = (),
    exclude_dirs=frozenset(),
    discover: bool = True,
) -> IgnoreRuleSet:
    """Build the immutable rule set used by the walker.

    Unparseable files are logged and dropped. A supplementary file that does
    not exist at all is a configuration mistake and raises ConfigurationError.
    """
    roots = list(roots)
    groups: List[IgnoreRuleGroup] = []
    if discover:
        for source in discover_ignore_files(roots, exclude_dirs):
            try:
                spec = load_ignore_file(source)
            except IgnoreRuleParseWarning as e:
                logger.warning("%s; skipping its rules", e)
                continue
            groups.append(IgnoreRuleGroup(base=source.parent, source=source, spec=spec))
            logger.debug("Loaded %d ignore patterns from %s", len(spec.patterns), source)

    global_groups: List[IgnoreRuleGroup] = []
    for extra in extra_files:
        extra = Path(extra)
        if not extra.is_file():
            raise ConfigurationError(f"Ignore file '{extra}' does not exist or is not a file")
        try:
            spec = load_ignore_file(extra)
        except IgnoreRuleParseWarning as e:
            logger.warning("%s; skipping its rules", e)
            continue
        global_groups.append(IgnoreRuleGroup(base=extra.parent, source=extra, spec=spec))
        logger.debug("Loaded %d supplementary patterns from %s", len(spec.patterns), extra)

    # deepest directory first so the nearest declaration is consulted first
    groups.sort(key=lambda g: len(g.base.parts), reverse=True)
    return IgnoreRuleSet(groups=tuple(groups), global_groups=tuple(global_groups))


# Matching

def match_rules(
    relative: str, spec: pathspec.GitIgnoreSpec, is_dir: bool = False
) -> Optional[bool]:
    """Return True if ignored, False if re-included, None if no pattern matched.

    *relative* is a POSIX path relative to the directory the patterns were
    declared in. A pattern naming the path itself outranks one that only
    matches a parent directory, so `!*/` does not re-include files.
    """
    if is_dir and not relative.endswith("/"):
        relative += "/"
    return spec.check_file(relative).include


def is_ignored(rules: IgnoreRuleSet, path: Path, root: Path, is_dir: bool = False) -> bool:
    """Decide whether *path* (found under *root*) is excluded by *rules*."""
    for group in rules.groups:
        if group.base == path or group.base not in path.parents:
            continue
        decision = match_rules(path.relative_to(group.base).as_posix(), group.spec, is_dir)
        if decision is not None:
            return decision

    relative = path.relative_to(root).as_posix()
    for group in reversed(rules.global_groups):
        decision = match_rules(relative, group.spec, is_dir)
        if decision is not None:
            return decision
    return False
