"""
Core logic for mdconcat package.
"""

from __future__ import annotations

import codecs
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import (
    ConfigurationError,
    FileReadWarning,
    MdConcatError,
    OutputError,
    RootNotFound,
)
from .ignore import IgnoreRuleSet, compile_ignore_rules, is_ignored

__all__ = [
    "CandidateFile",
    "ConcatConfig",
    "ConfigurationError",
    "FileReadWarning",
    "MdConcatError",
    "OutputError",
    "RootNotFound",
    "RunStatistics",
    "collect_files",
    "has_allowed_extension",
    "normalize_roots",
    "run",
    "sort_candidates",
    "write_document",
]

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

_LANG_MAP: Dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".jsx": "jsx",
    ".json": "json",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".toml": "toml",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".md": "markdown",
    ".sh": "bash",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".java": "java",
    ".kt": "kotlin",
    ".swift": "swift",
    ".cs": "csharp",
    ".sql": "sql",
    ".xml": "xml",
    ".lua": "lua",
}


def _lang_from_ext(name: str) -> str:
    return _LANG_MAP.get(os.path.splitext(name)[1].lower(), "")


# Configuration

def _normalize_extensions(extensions: Iterable[str]) -> Tuple[str, ...]:
    seen: List[str] = []
    for ext in extensions:
        ext = ext.strip()
        if ext.startswith("."):
            ext = ext[1:]
        if ext and ext not in seen:
            seen.append(ext)
    return tuple(seen)


@dataclass(frozen=True)
class ConcatConfig:
    """Resolved options for one run, passed explicitly through the pipeline."""

    output: Path
    extensions: Tuple[str, ...]
    roots: Tuple[Path, ...] = (Path("."),)
    exclude_dirs: frozenset = frozenset()
    respect_gitignore: bool = True
    extra_ignore_files: Tuple[Path, ...] = ()

    def __post_init__(self) -> None:
        extensions = _normalize_extensions(self.extensions)
        if not extensions:
            raise ConfigurationError("At least one file extension is required")
        object.__setattr__(self, "output", Path(self.output))
        object.__setattr__(self, "extensions", extensions)
        object.__setattr__(self, "roots", tuple(Path(r) for r in self.roots) or (Path("."),))
        object.__setattr__(self, "exclude_dirs", frozenset(d for d in self.exclude_dirs if d))
        object.__setattr__(
            self, "extra_ignore_files", tuple(Path(p) for p in self.extra_ignore_files)
        )


@dataclass(frozen=True)
class CandidateFile:
    root: Path
    path: Path
    relative: str

    @property
    def sort_key(self) -> bytes:
        return self.relative.encode("utf-8", "surrogateescape")


@dataclass
class RunStatistics:
    """Counters accumulated while the document is written."""

    files_included: int = 0
    files_skipped: int = 0
    characters: int = 0
    words: int = 0
    _in_word: bool = field(default=False, repr=False, compare=False)

    def add_text(self, text: str) -> None:
        """Count *text*, treating a word split across calls as one word."""
        if not text:
            return
        self.characters += len(text)
        words = len(text.split())
        if self._in_word and not text[0].isspace():
            words -= 1
        self.words += max(words, 0)
        self._in_word = not text[-1].isspace()

    def merge(self, other: "RunStatistics") -> None:
        self.characters += other.characters
        self.words += other.words
        self._in_word = other._in_word


# Root normalization

def normalize_roots(roots: Iterable[Path]) -> List[Path]:
    """Resolve *roots* and drop duplicates and roots nested inside another root."""
    resolved: List[Path] = []
    for root in roots:
        root = Path(root)
        try:
            canonical = root.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise RootNotFound(f"Input directory '{root}' is not accessible: {e}") from e
        if not canonical.is_dir():
            raise RootNotFound(f"Input path '{root}' is not a directory")
        if canonical in resolved:
            logger.info("Skipping duplicate directory: %s", root)
            continue
        resolved.append(canonical)

    independent: List[Path] = []
    for root in resolved:
        ancestor = next((other for other in resolved if other in root.parents), None)
        if ancestor is not None:
            logger.info("Skipping %s: already covered by %s", root, ancestor)
            continue
        independent.append(root)
    return independent


# File discovery

def has_allowed_extension(name: str, extensions: Sequence[str]) -> bool:
    """Case-sensitive match of the final extension of *name* against *extensions*."""
    ext = os.path.splitext(name)[1][1:]
    return bool(ext) and ext in extensions


def sort_candidates(candidates: Iterable[CandidateFile]) -> List[CandidateFile]:
    """Order by relative path, byte-wise; ties keep their input order."""
    return sorted(candidates, key=lambda c: c.sort_key)


def _walk_error(err: OSError) -> None:
    logger.warning("Could not read directory '%s': %s", err.filename, err.strerror or err)


def _canonical(path: Path) -> Path:
    try:
        return path.resolve()
    except (OSError, RuntimeError):
        return path.absolute()


def collect_files(
    config: ConcatConfig,
    roots: Sequence[Path],
    rules: Optional[IgnoreRuleSet] = None,
) -> List[CandidateFile]:
    """Walk *roots* and return the sorted files that pass every filter.

    *roots* must already be normalized. When *rules* is None ignore
    processing is bypassed. A file reachable under several relative paths
    (through a symlink) is reported once, under the first path in sort order.
    """
    output = _canonical(config.output)

    found: List[CandidateFile] = []
    for root in roots:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error, followlinks=False):
            current = Path(dirpath)

            kept_dirs = []
            for name in sorted(dirnames):
                if name in config.exclude_dirs:
                    logger.debug("Excluding directory %s", current / name)
                    continue
                if rules is not None and is_ignored(rules, current / name, root, is_dir=True):
                    logger.debug("Ignoring directory %s", current / name)
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for name in filenames:
                path = current / name
                if not has_allowed_extension(name, config.extensions):
                    continue
                if rules is not None and is_ignored(rules, path, root):
                    logger.debug("Ignoring file %s", path)
                    continue
                found.append(
                    CandidateFile(root=root, path=path, relative=path.relative_to(root).as_posix())
                )

    unique: List[CandidateFile] = []
    seen = {output}
    for candidate in sort_candidates(found):
        canonical = _canonical(candidate.path)
        if canonical in seen:
            logger.debug("Skipping %s: same file already included", candidate.relative)
            continue
        seen.add(canonical)
        unique.append(candidate)
    return unique


# Output generation

def _is_binary(data: bytes) -> bool:
    return b"\0" in data


def _copy_content(
    candidate: CandidateFile,
    out_fh,
    counter: RunStatistics,
    chunk_size: int,
) -> str:
    """Stream one file into *out_fh*; return the last character written ('' if none)."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="strict")
    last = ""
    try:
        with candidate.path.open("rb") as in_fh:
            while True:
                raw = in_fh.read(chunk_size)
                if not raw:
                    break
                if _is_binary(raw):
                    raise FileReadWarning(f"Skipping binary file {candidate.relative}")
                text = decoder.decode(raw)
                if text:
                    counter.add_text(text)
                    last = text[-1]
                # validated UTF-8, so the original bytes are copied verbatim
                out_fh.write(raw)
            decoder.decode(b"", final=True)
    except UnicodeDecodeError as e:
        raise FileReadWarning(f"Skipping {candidate.relative}: not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise FileReadWarning(f"Could not read {candidate.relative}: {e}") from e
    return last


def _write_text(out_fh, counter: RunStatistics, text: str) -> None:
    counter.add_text(text)
    out_fh.write(text.encode("utf-8", "replace"))


def write_document(
    candidates: Iterable[CandidateFile],
    output: Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> RunStatistics:
    """Write every candidate into the Markdown document at *output*.

    A file that cannot be read or is not UTF-8 text is skipped with a
    warning; whatever part of its section was already written is truncated
    away so the document only ever contains complete sections.
    """
    output = Path(output)
    out_dir = output.parent
    if not out_dir.exists():
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Could not create output directory '{out_dir}': {e}") from e

    stats = RunStatistics()
    try:
        out_fh = output.open("wb")
    except OSError as e:
        raise OutputError(f"Could not create output file '{output}': {e}") from e

    try:
        with out_fh:
            for candidate in candidates:
                section_start = out_fh.tell()
                section = RunStatistics()
                lang = _lang_from_ext(candidate.relative)
                _write_text(out_fh, section, f"## {candidate.relative}\n\n```{lang}\n")
                try:
                    last = _copy_content(candidate, out_fh, section, chunk_size)
                except FileReadWarning as e:
                    logger.warning("%s", e)
                    out_fh.seek(section_start)
                    out_fh.truncate()
                    stats.files_skipped += 1
                    continue
                if last and last != "\n":
                    _write_text(out_fh, section, "\n")
                _write_text(out_fh, section, "```\n\n")
                stats.merge(section)
                stats.files_included += 1
                logger.debug("Added %s", candidate.relative)
    except OSError as e:
        raise OutputError(f"Could not write to output file '{output}': {e}") from e

    return stats


# Pipeline

def run(config: ConcatConfig) -> RunStatistics:
    """Normalize roots, compile ignore rules, collect files and write the document.

    Fatal problems are raised before the output file is opened.
    """
    roots = normalize_roots(config.roots)
    for root in roots:
        logger.info("Input directory: %s", root)
    logger.info("Extensions: %s", ", ".join(config.extensions))
    if config.exclude_dirs:
        logger.info("Excluding directories: %s", ", ".join(sorted(config.exclude_dirs)))

    rules: Optional[IgnoreRuleSet] = None
    if config.respect_gitignore:
        rules = compile_ignore_rules(
            roots,
            extra_files=config.extra_ignore_files,
            exclude_dirs=config.exclude_dirs,
        )
        logger.info("Gitignore support enabled (%d ignore files loaded)", len(rules))
    else:
        logger.info("Gitignore support disabled")

    candidates = collect_files(config, roots, rules)
    logger.info("Concatenating %d files...", len(candidates))
    return write_document(candidates, config.output)
