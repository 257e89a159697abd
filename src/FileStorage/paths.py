"""
Path joining and normalization shared by all filesystem backends.

Nothing in this module touches the medium. Each backend describes its own
conventions with a PathRules value and passes it in explicitly.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple


_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://[^/]*")
_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def _posix_root(path: str) -> str:
    return "/" if path.startswith("/") else ""


def _windows_root(path: str) -> str:
    # "C:\", "C:/", "\\server" style prefixes and a bare leading separator
    match = _DRIVE_RE.match(path)
    if match:
        drive = match.group(0)
        rest = path[len(drive):]
        if rest[:1] in ("\\", "/"):
            return drive + "\\"
        return drive
    if path[:1] in ("\\", "/"):
        return "\\"
    return ""


@dataclass(frozen=True)
class PathRules:
    """
    Separator and root conventions of one storage medium.

    Attributes:
        separator: The canonical separator
        alt_separators: Other characters accepted as separators on input
        root_of: Returns the root prefix of a path, or "" for relative paths
        strip_scheme: Whether "scheme://authority" prefixes are dropped
        force_root: Whether relative paths are rooted during normalization
        drop_dot_segments: Whether "." segments are removed during
            normalization (join_path keeps them either way)
    """

    separator: str
    alt_separators: Tuple[str, ...] = ()
    root_of: Callable[[str], str] = field(default=_posix_root, compare=False)
    strip_scheme: bool = False
    force_root: bool = False
    drop_dot_segments: bool = False

    def is_absolute(self, path: str) -> bool:
        if self.strip_scheme and _SCHEME_RE.match(path):
            return True
        return bool(self.root_of(path))


POSIX_RULES = PathRules(separator="/")
WINDOWS_RULES = PathRules(separator="\\", alt_separators=("/",), root_of=_windows_root)
LOCAL_RULES = WINDOWS_RULES if os.name == "nt" else POSIX_RULES
# Cluster name nodes reject "." components
DISTRIBUTED_RULES = PathRules(separator="/", strip_scheme=True, force_root=True, drop_dot_segments=True)


@dataclass(frozen=True)
class StoragePath:
    """
    An immutable, normalized path.

    Attributes:
        root: The root prefix ("" for relative paths)
        segments: The path components after the root
        separator: The separator used to render the path
    """

    root: str
    segments: Tuple[str, ...]
    separator: str = "/"

    @property
    def absolute(self) -> bool:
        return bool(self.root)

    @property
    def name(self) -> str:
        return self.segments[-1] if self.segments else ""

    @property
    def dir(self) -> str:
        """The parent directory as a string."""
        parent = str(StoragePath(self.root, self.segments[:-1], self.separator))
        return parent or "."

    def __str__(self) -> str:
        body = self.separator.join(self.segments)
        if self.root:
            return self.root + body
        return body


def join_path(*segments: str, rules: PathRules = LOCAL_RULES) -> str:
    """
    Join path segments with the separator of the given rules.

    An absolute segment discards everything joined before it. Relative
    prefixes such as "./" are kept verbatim, ".." is not resolved and empty
    segments are skipped.

    Args:
        *segments: The segments to join
        rules: The conventions of the target medium

    Returns:
        The joined path
    """
    result = ""
    separators = (rules.separator,) + rules.alt_separators
    for segment in segments:
        if not segment:
            continue
        if not result or rules.is_absolute(segment):
            result = segment
        elif result.endswith(separators):
            result += segment
        else:
            result += rules.separator + segment
    return result


def normalize_path(path: str, rules: PathRules = LOCAL_RULES, base: Optional[str] = None) -> StoragePath:
    """
    Decompose a path into root and segments under the given rules.

    Repeated and trailing separators are dropped and alternative separators
    are converted. Normalizing the string form of the result yields the same
    result again.

    Args:
        path: The path to normalize
        rules: The conventions of the target medium
        base: For rules that force a root, the directory relative paths are
            resolved against (defaults to the root itself)

    Returns:
        The normalized StoragePath
    """
    path = str(path)
    if rules.strip_scheme:
        path = _SCHEME_RE.sub("", path, count=1)
    for alt in rules.alt_separators:
        path = path.replace(alt, rules.separator)

    root = rules.root_of(path)
    segments = _split_segments(path[len(root):], rules)
    if rules.force_root and not root:
        if base:
            base_path = normalize_path(base, rules)
            return StoragePath(base_path.root, base_path.segments + segments, rules.separator)
        root = rules.separator
    return StoragePath(root, segments, rules.separator)


def split_path(path: str, rules: PathRules = LOCAL_RULES) -> Tuple[str, str]:
    """Split a path into its parent directory and base name."""
    normalized = normalize_path(path, rules)
    return normalized.dir, normalized.name


def _split_segments(rest: str, rules: PathRules) -> Tuple[str, ...]:
    skipped = ("", ".") if rules.drop_dot_segments else ("",)
    return tuple(part for part in rest.split(rules.separator) if part not in skipped)
