#!/usr/bin/env python3
"""Lockfile Security Checker - flag known-compromised npm packages in CI.

This module reads an npm ``package-lock.json`` (lockfileVersion 2 or newer),
extracts every installed top-level ``name@version`` identifier and checks each
one against a static list of known-compromised package versions, such as the
September 2025 ``chalk``/``debug`` takeover and the "Shai-Hulud" worm wave.

The lockfile is treated as untrusted input: the path is validated against
traversal and out-of-tree absolute locations, the file size is capped before
any content is read, and JSON keys that could poison shared object state in
downstream JavaScript tooling are stripped at every depth.

License:
    MIT License - See LICENSE file for details

Example:
    Basic usage from command line::

        $ lockcheck ./package-lock.json
        $ lockcheck .                       # looks for ./package-lock.json
        $ lockcheck . --format json -o report.json
        $ lockcheck --list-affected ctrl

    Programmatic usage::

        from lockcheck import get_affected_packages, load_affected_set

        affected_set = load_affected_set()
        report = get_affected_packages("package-lock.json", affected_set.has_package)
        if report.affected_packages:
            print("Compromised:", ", ".join(report.affected_packages))
"""
import argparse
import json
import logging
import os
import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table


logger = logging.getLogger(__name__)

# Maximum lockfile size: 50 MiB
MAX_FILE_SIZE = 50 * 1024 * 1024
# npm registry limit
MAX_PACKAGE_NAME_LENGTH = 214
MAX_VERSION_LENGTH = 100
MAX_PACKAGE_STRING_LENGTH = 1000

DEFAULT_LOCKFILE_NAME = "package-lock.json"

# SECURITY: Keys that mutate prototypes/constructors when a JSON tree is later
# consumed by JavaScript tooling. Dropped at every nesting depth.
POLLUTING_KEYS = frozenset({"__proto__", "constructor", "prototype"})

# Hyphen kept last in each class so it is literal.
PACKAGE_NAME_PATTERN = re.compile(r"(@[a-z0-9~-][a-z0-9._~-]*/)?[a-z0-9~-][a-z0-9._~-]*")
VERSION_PATTERN = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+(-[a-zA-Z0-9.-]+)?(\+[a-zA-Z0-9.-]+)?")

# SECURITY: Leading characters a spreadsheet evaluates as a formula
CSV_FORMULA_TRIGGERS = ("=", "+", "-", "@", "\t", "\r")
RESTRICTED_OUTPUT_PATTERNS = ("/dev/", "/proc/", "/sys/", "\\\\")


def sanitize_path_for_display(path: Path) -> str:
    """Sanitize file path for safe display in logs and output.

    Replaces user's home directory with ~ to prevent PII exposure.
    """
    try:
        relative = Path(path).relative_to(Path.home())
    except (ValueError, RuntimeError):
        # Not under the home directory, or no home directory at all
        return str(path)
    return f"~/{relative}"


class ErrorCode(Enum):
    """Stable, machine-readable failure kinds reported by the checker.

    Every :class:`SecurityCheckError` carries one of these codes. The CLI
    prints the code next to the human message so CI logs can be grepped.
    """
    INVALID_PATH = "INVALID_PATH"
    NULL_BYTES_IN_PATH = "NULL_BYTES_IN_PATH"
    PATH_TRAVERSAL = "PATH_TRAVERSAL"
    ABSOLUTE_PATH_OUTSIDE_CWD = "ABSOLUTE_PATH_OUTSIDE_CWD"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    NOT_A_FILE = "NOT_A_FILE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_JSON_INPUT = "INVALID_JSON_INPUT"
    JSON_PARSE_ERROR = "JSON_PARSE_ERROR"
    INVALID_PACKAGE_STRING = "INVALID_PACKAGE_STRING"
    PACKAGE_STRING_TOO_LONG = "PACKAGE_STRING_TOO_LONG"
    INVALID_PACKAGE_FORMAT = "INVALID_PACKAGE_FORMAT"
    INVALID_PACKAGE_NAME = "INVALID_PACKAGE_NAME"
    INVALID_VERSION = "INVALID_VERSION"
    NO_ARGUMENTS = "NO_ARGUMENTS"
    INVALID_PATH_ARGUMENT = "INVALID_PATH_ARGUMENT"
    DIRECTORY_ERROR = "DIRECTORY_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class SecurityCheckError(Exception):
    """Error raised by any stage of the lockfile checking pipeline.

    Attributes:
        message (str): Human readable description
        code (ErrorCode): Machine readable failure kind
        details (dict): Optional structured context (sizes, offsets, ...)
    """

    def __init__(self, message: str, code: ErrorCode, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Path and file guards
# ---------------------------------------------------------------------------

def validate_path(input_path: Any) -> Path:
    """Validate a user supplied path and return its canonical absolute form.

    The path is normalized before checking, so ``a/../b`` is accepted while
    ``../b`` (a traversal segment that survives normalization) is rejected.

    Args:
        input_path: Path string or ``os.PathLike`` from the command line

    Returns:
        Normalized absolute path under the current working directory

    Raises:
        SecurityCheckError: INVALID_PATH, NULL_BYTES_IN_PATH, PATH_TRAVERSAL
            or ABSOLUTE_PATH_OUTSIDE_CWD
    """
    if isinstance(input_path, os.PathLike):
        input_path = os.fspath(input_path)
    if not isinstance(input_path, str) or not input_path:
        raise SecurityCheckError("Path must be a non-empty string", ErrorCode.INVALID_PATH)

    # SECURITY: Check for null bytes first, the OS would truncate at them
    if "\0" in input_path:
        raise SecurityCheckError("Null bytes not allowed in path", ErrorCode.NULL_BYTES_IN_PATH)

    normalized = os.path.normpath(input_path)
    if ".." in re.split(r"[\\/]", normalized):
        raise SecurityCheckError("Path traversal detected", ErrorCode.PATH_TRAVERSAL)

    cwd = os.getcwd()
    resolved = os.path.normpath(os.path.join(cwd, normalized))
    if os.path.isabs(normalized):
        if not _is_within(resolved, cwd):
            raise SecurityCheckError(
                "Absolute paths outside working directory not allowed",
                ErrorCode.ABSOLUTE_PATH_OUTSIDE_CWD,
                {"path": resolved, "cwd": cwd},
            )
        # Only the part below cwd came from the user
        normalized = os.path.relpath(resolved, cwd)

    if "~" in normalized:
        raise SecurityCheckError("Path traversal detected", ErrorCode.PATH_TRAVERSAL)

    return Path(resolved)


def _is_within(path: str, directory: str) -> bool:
    try:
        return os.path.commonpath([path, directory]) == directory
    except ValueError:
        # Different drives on Windows
        return False


def validate_file_exists(file_path: Path) -> None:
    """Ensure the path exists and is a regular file."""
    if not file_path.exists():
        raise SecurityCheckError(f"File not found: {file_path}", ErrorCode.FILE_NOT_FOUND)
    if not file_path.is_file():
        raise SecurityCheckError(f"Path is not a file: {file_path}", ErrorCode.NOT_A_FILE)


def validate_file_size(file_path: Path, max_size: Optional[int] = None) -> int:
    """Reject files larger than ``max_size`` bytes using ``stat`` only.

    Returns:
        The file size in bytes
    """
    limit = MAX_FILE_SIZE if max_size is None else max_size
    size = file_path.stat().st_size
    if size > limit:
        raise SecurityCheckError(
            f"File too large: {size} bytes (max: {limit} bytes)",
            ErrorCode.FILE_TOO_LARGE,
            {"size": size, "max_size": limit},
        )
    return size


def validate_arguments(args: Sequence[str]) -> str:
    """Validate raw CLI positional arguments and return the lockfile path."""
    if not args:
        raise SecurityCheckError("No arguments provided", ErrorCode.NO_ARGUMENTS)

    lockfile_path = args[0]
    if not isinstance(lockfile_path, str) or not lockfile_path:
        raise SecurityCheckError("Invalid path provided", ErrorCode.INVALID_PATH_ARGUMENT)
    if "\0" in lockfile_path:
        raise SecurityCheckError("Null bytes not allowed in path", ErrorCode.NULL_BYTES_IN_PATH)

    return lockfile_path


def read_lockfile(lockfile_path: Any) -> str:
    """Read a lockfile through the guarded path.

    Existence, type and size are checked before the file is opened; the
    handle is closed before any parsing starts.
    """
    validated = validate_path(lockfile_path)
    validate_file_exists(validated)
    size = validate_file_size(validated)
    logger.debug("Reading %s (%d bytes)", sanitize_path_for_display(validated), size)

    limit = MAX_FILE_SIZE
    with open(validated, "rb") as f:
        # SECURITY: Bounded read, the file may have grown since stat()
        data = f.read(limit + 1)
    if len(data) > limit:
        raise SecurityCheckError(
            f"File too large: more than {limit} bytes read",
            ErrorCode.FILE_TOO_LARGE,
            {"size": len(data), "max_size": limit},
        )

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SecurityCheckError(
            f"Lockfile is not valid UTF-8: {e.reason}", ErrorCode.INVALID_JSON_INPUT
        ) from e


# ---------------------------------------------------------------------------
# Safe JSON parsing
# ---------------------------------------------------------------------------

class JsonKind(Enum):
    """Shape of a parsed JSON value."""
    NULL = "null"
    BOOL = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def json_kind(value: Any) -> JsonKind:
    """Classify a value produced by :func:`safe_json_loads`."""
    if value is None:
        return JsonKind.NULL
    # bool before int: bool is a subclass of int
    if isinstance(value, bool):
        return JsonKind.BOOL
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, list):
        return JsonKind.ARRAY
    if isinstance(value, dict):
        return JsonKind.OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def _drop_polluting_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    obj = {}
    for key, value in pairs:
        if key in POLLUTING_KEYS:
            logger.debug("Dropping JSON key %r", key)
            continue
        obj[key] = value
    return obj


def _reject_constant(name: str) -> Any:
    raise SecurityCheckError(f"Invalid JSON: {name} is not a JSON value", ErrorCode.JSON_PARSE_ERROR)


def safe_json_loads(json_string: Any) -> Any:
    """Parse JSON text, stripping prototype-pollution keys at every depth.

    ``NaN``/``Infinity`` literals, which Python accepts but JSON does not, are
    rejected as well.

    Raises:
        SecurityCheckError: INVALID_JSON_INPUT for empty or non-string input,
            JSON_PARSE_ERROR for malformed or pathologically nested JSON
    """
    if not isinstance(json_string, str) or not json_string:
        raise SecurityCheckError("JSON string must be a non-empty string", ErrorCode.INVALID_JSON_INPUT)

    try:
        return json.loads(
            json_string,
            object_pairs_hook=_drop_polluting_keys,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as e:
        raise SecurityCheckError(
            f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            ErrorCode.JSON_PARSE_ERROR,
            {"line": e.lineno, "column": e.colno},
        ) from e
    except RecursionError as e:
        raise SecurityCheckError("Invalid JSON: nesting too deep", ErrorCode.JSON_PARSE_ERROR) from e


# ---------------------------------------------------------------------------
# Package name / version validation
# ---------------------------------------------------------------------------

def validate_package_name(name: Any) -> bool:
    """Check an npm package name (optionally ``@scope/`` prefixed)."""
    if not isinstance(name, str) or not name:
        return False
    if len(name) > MAX_PACKAGE_NAME_LENGTH:
        return False
    return PACKAGE_NAME_PATTERN.fullmatch(name) is not None


def validate_version(version: Any) -> bool:
    """Check a ``major.minor.patch[-pre][+build]`` version string."""
    if not isinstance(version, str) or not version:
        return False
    if len(version) > MAX_VERSION_LENGTH:
        return False
    return VERSION_PATTERN.fullmatch(version) is not None


def validate_package_string(package_string: Any) -> None:
    """Strictly validate a ``name@version`` string.

    Raises:
        SecurityCheckError: INVALID_PACKAGE_STRING, PACKAGE_STRING_TOO_LONG,
            INVALID_PACKAGE_FORMAT, INVALID_PACKAGE_NAME or INVALID_VERSION
    """
    _check_package_string_bounds(package_string)

    name, sep, version = package_string.rpartition("@")
    if not sep or not name:
        raise SecurityCheckError(f"Invalid package format: {package_string}", ErrorCode.INVALID_PACKAGE_FORMAT)
    if not validate_package_name(name):
        raise SecurityCheckError(f"Invalid package name format: {name}", ErrorCode.INVALID_PACKAGE_NAME)
    if not validate_version(version):
        raise SecurityCheckError(f"Invalid version format: {version}", ErrorCode.INVALID_VERSION)


def _check_package_string_bounds(package_string: Any) -> None:
    if not isinstance(package_string, str) or not package_string:
        raise SecurityCheckError("Package string must be a non-empty string", ErrorCode.INVALID_PACKAGE_STRING)
    if len(package_string) > MAX_PACKAGE_STRING_LENGTH:
        raise SecurityCheckError("Package string too long", ErrorCode.PACKAGE_STRING_TOO_LONG)


def extract_identifier(name: str, version: str) -> str:
    """Join a package name and version into the canonical ``name@version``."""
    return f"{name}@{version}"


def split_identifier(full_name: str) -> Tuple[str, str]:
    """Split ``name@version`` on its last ``@``.

    Names may themselves contain ``@`` (``@scope/name``), so only the final
    occurrence separates the version.
    """
    name, sep, version = full_name.rpartition("@")
    if not sep:
        raise SecurityCheckError(f"Invalid package format: {full_name}", ErrorCode.INVALID_PACKAGE_FORMAT)
    return name, version


# ---------------------------------------------------------------------------
# Lockfile extraction
# ---------------------------------------------------------------------------

def _string_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


class LockEntry(BaseModel):
    """One value of the lockfile ``packages`` map.

    Only ``version`` is used. Entries without one are directory markers or
    workspace links. A non-string version is treated as missing.
    """
    model_config = ConfigDict(extra="ignore")

    version: Optional[str] = None

    @field_validator("version", mode="before")
    @classmethod
    def _version_or_none(cls, v: Any) -> Optional[str]:
        return _string_or_none(v)


class LockManifest(BaseModel):
    """Validated view of a ``package-lock.json`` document.

    Attributes:
        name (str): Root project name, if declared
        version (str): Root project version, if declared
        lockfile_version (int): ``lockfileVersion`` field
        packages (Dict[str, LockEntry]): Package-path key to entry mapping
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: Optional[str] = None
    version: Optional[str] = None
    lockfile_version: Optional[int] = Field(default=None, alias="lockfileVersion")
    packages: Dict[str, LockEntry]

    @field_validator("name", "version", mode="before")
    @classmethod
    def _text_or_none(cls, v: Any) -> Optional[str]:
        return _string_or_none(v)

    @field_validator("lockfile_version", mode="before")
    @classmethod
    def _int_or_none(cls, v: Any) -> Optional[int]:
        return v if isinstance(v, int) and not isinstance(v, bool) else None

    @field_validator("packages", mode="before")
    @classmethod
    def _object_entries_only(cls, v: Any) -> Any:
        if json_kind(v) is not JsonKind.OBJECT:
            return v
        return {key: entry for key, entry in v.items() if json_kind(entry) is JsonKind.OBJECT}


def package_name_from_path(package_path: str) -> Optional[str]:
    """Derive a package name from a depth-1 ``node_modules`` path key.

    ``node_modules/foo`` gives ``foo`` and ``node_modules/@scope/bar`` gives
    ``@scope/bar``. Nested copies such as
    ``node_modules/foo/node_modules/bar`` and anything outside
    ``node_modules`` (workspace sources) give None.
    """
    parts = package_path.split("/")
    if parts[0] != "node_modules" or not all(parts[1:]):
        return None
    if len(parts) == 2:
        return parts[1]
    if len(parts) == 3 and parts[1].startswith("@"):
        return f"{parts[1]}/{parts[2]}"
    return None


def parse_lock_manifest(tree: Any) -> LockManifest:
    """Validate a parsed JSON tree as a lockfile."""
    kind = json_kind(tree)
    if kind is not JsonKind.OBJECT:
        raise SecurityCheckError(
            f"Lockfile root must be an object, got {kind.value}", ErrorCode.INVALID_JSON_INPUT
        )
    packages_kind = json_kind(tree.get("packages"))
    if packages_kind is not JsonKind.OBJECT:
        raise SecurityCheckError(
            f"Lockfile 'packages' must be an object, got {packages_kind.value} "
            "(lockfileVersion 2 or newer is required)",
            ErrorCode.INVALID_JSON_INPUT,
        )

    try:
        return LockManifest.model_validate(tree)
    except ValidationError as e:
        raise SecurityCheckError(
            f"Invalid lockfile structure: {e.error_count()} validation error(s)",
            ErrorCode.INVALID_JSON_INPUT,
            {"errors": e.errors(include_url=False)},
        ) from e


def extract_packages(tree: Any) -> List[str]:
    """Extract sorted, de-duplicated ``name@version`` identifiers from a lockfile tree.

    Args:
        tree: Output of :func:`safe_json_loads`

    Returns:
        Identifiers in plain code-point order, independent of key order
    """
    manifest = parse_lock_manifest(tree)

    installed = set()
    for package_path, entry in manifest.packages.items():
        # Root project self-reference
        if package_path == "":
            continue
        if entry.version is None:
            logger.debug("Skipping %r: no version", package_path)
            continue

        name = package_name_from_path(package_path)
        if name is None:
            logger.debug("Skipping nested or non-node_modules entry %r", package_path)
            continue

        installed.add(extract_identifier(name, entry.version))

    return sorted(installed)


def get_installed_packages(lockfile_path: Any) -> List[str]:
    """Read a lockfile and return all installed ``name@version`` identifiers.

    Raises:
        SecurityCheckError: Any guard, parse or structure failure. Other
            exceptions are wrapped as UNEXPECTED_ERROR.
    """
    try:
        content = read_lockfile(lockfile_path)
        tree = safe_json_loads(content)
        return extract_packages(tree)
    except SecurityCheckError:
        raise
    except Exception as e:
        raise SecurityCheckError(f"Unexpected error: {e}", ErrorCode.UNEXPECTED_ERROR) from e


def validate_lockfile_name(lockfile_name: str) -> str:
    """Ensure a lockfile name is a bare file name, not a path."""
    if (
        not isinstance(lockfile_name, str)
        or lockfile_name in ("", ".", "..")
        or os.path.basename(lockfile_name) != lockfile_name
        or "\\" in lockfile_name
        or "\0" in lockfile_name
    ):
        raise SecurityCheckError(f"Invalid lockfile name: {lockfile_name!r}", ErrorCode.INVALID_PATH)
    return lockfile_name


def resolve_lockfile_path(input_path: Any, lockfile_name: str = DEFAULT_LOCKFILE_NAME) -> Path:
    """Validate a CLI path; a directory means ``<dir>/<lockfile_name>``."""
    validated = validate_path(input_path)
    if validated.is_dir():
        return validated / validate_lockfile_name(lockfile_name)
    return validated


def get_installed_packages_from_directory(directory_path: Any,
                                          lockfile_name: str = DEFAULT_LOCKFILE_NAME) -> List[str]:
    """Find the lockfile inside ``directory_path`` and extract its packages."""
    try:
        validated_dir = validate_path(directory_path)
        lockfile_path = validated_dir / validate_lockfile_name(lockfile_name)
        return get_installed_packages(lockfile_path)
    except SecurityCheckError:
        raise
    except Exception as e:
        raise SecurityCheckError(f"Error processing directory: {e}", ErrorCode.DIRECTORY_ERROR) from e


# ---------------------------------------------------------------------------
# Affected package set
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PackageRecord:
    """A single compromised package version.

    Attributes:
        name (str): Package name, may contain ``@`` (``@scope/name``)
        version (str): Version string after the last ``@``
        full_name (str): ``name@version``
    """
    name: str
    version: str
    full_name: str


@dataclass(frozen=True)
class SkippedEntry:
    """A static-list entry rejected while building an :class:`AffectedSet`."""
    raw: Any
    code: ErrorCode
    reason: str


def parse_package_string(package_string: Any, strict: bool = False) -> PackageRecord:
    """Parse ``name@version`` into a :class:`PackageRecord`.

    The last ``@`` separates name and version. In strict mode the name and
    version must also satisfy :func:`validate_package_string`.
    """
    if strict:
        validate_package_string(package_string)
    else:
        _check_package_string_bounds(package_string)

    name, version = split_identifier(package_string)
    return PackageRecord(name=name, version=version, full_name=package_string)


def version_sort_key(version: str) -> Tuple[Tuple[int, int, str], ...]:
    """Numeric-aware sort key: digit runs compare by value, text by code point.

    ``"10.0.0"`` sorts after ``"9.0.0"``. This is not semver precedence:
    ``"1.0.0"`` sorts before ``"1.0.0-beta.1"``.
    """
    key = []
    # re.split with a capture group puts the digit runs at odd indices
    for index, token in enumerate(re.split(r"(\d+)", version)):
        if not token:
            continue
        if index % 2:
            key.append((0, int(token), ""))
        else:
            key.append((1, 0, token))
    return tuple(key)


class AffectedSet:
    """In-memory lookup of known-compromised package versions.

    Built once at startup from a static ``name@version`` sequence and never
    mutated afterwards. Malformed source entries are skipped and surfaced via
    :attr:`skipped` instead of aborting the load.

    Attributes:
        skipped (Tuple[SkippedEntry, ...]): Entries rejected during loading

    Example:
        >>> affected = AffectedSet.from_strings(["left-pad@1.0.0", "@s/x@2.0.0"])
        >>> affected.has_package("left-pad@1.0.0")
        True
        >>> affected.get_all_package_names()
        ['@s/x', 'left-pad']
    """

    def __init__(self, records: Iterable[PackageRecord] = (), skipped: Iterable[SkippedEntry] = ()):
        packages: Dict[str, PackageRecord] = {}
        for record in records:
            # Duplicates in source data overwrite, last write wins
            packages[record.full_name] = record
        self._packages = packages
        self.skipped = tuple(skipped)

    @classmethod
    def from_strings(cls, package_strings: Iterable[Any], strict: bool = False) -> "AffectedSet":
        """Build a set from raw ``name@version`` strings.

        Args:
            package_strings: Ordered static data source
            strict: Also validate name/version charsets and lengths
        """
        records = []
        skipped = []
        for raw in package_strings:
            try:
                records.append(parse_package_string(raw, strict=strict))
            except SecurityCheckError as e:
                logger.warning("Skipping affected-list entry %r: %s", raw, e.message)
                skipped.append(SkippedEntry(raw=raw, code=e.code, reason=e.message))
        return cls(records, skipped)

    @property
    def packages(self) -> Mapping[str, PackageRecord]:
        """Read-only ``full_name -> PackageRecord`` view."""
        return MappingProxyType(self._packages)

    def has_package(self, full_name: Any) -> bool:
        """Check whether ``full_name`` is a known-compromised version.

        Malformed input returns False rather than raising, so this can be
        used directly as a filter predicate.
        """
        if not isinstance(full_name, str) or not full_name:
            return False
        return full_name in self._packages

    def get_packages_by_name(self, name: str) -> List[PackageRecord]:
        """All listed versions of ``name``, in insertion order."""
        self._require_name(name)
        return [record for record in self._packages.values() if record.name == name]

    def get_latest_version(self, name: str) -> Optional[PackageRecord]:
        """Highest listed version of ``name`` under :func:`version_sort_key`."""
        candidates = self.get_packages_by_name(name)
        if not candidates:
            return None
        return max(candidates, key=lambda record: version_sort_key(record.version))

    def get_all_package_names(self) -> List[str]:
        return sorted({record.name for record in self._packages.values()})

    def get_total_count(self) -> int:
        return len(self._packages)

    def __len__(self) -> int:
        return len(self._packages)

    def __contains__(self, full_name: Any) -> bool:
        return self.has_package(full_name)

    @staticmethod
    def _require_name(name: Any) -> None:
        if not isinstance(name, str) or not name:
            raise SecurityCheckError("Package name must be a non-empty string", ErrorCode.INVALID_PACKAGE_STRING)


def load_affected_set(package_strings: Optional[Iterable[str]] = None, strict: bool = True) -> AffectedSet:
    """Build the :class:`AffectedSet` from the bundled static list.

    Args:
        package_strings: Override the bundled ``AFFECTED_PACKAGES`` list
        strict: Validate name/version format of each entry
    """
    if package_strings is None:
        from affected_packages import AFFECTED_PACKAGES
        package_strings = AFFECTED_PACKAGES

    affected_set = AffectedSet.from_strings(package_strings, strict=strict)
    logger.debug("Loaded %d affected package versions (%d skipped)",
                 affected_set.get_total_count(), len(affected_set.skipped))
    return affected_set


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

@dataclass
class Report:
    """Outcome of checking one lockfile.

    Attributes:
        all_packages (List[str]): Every installed identifier, sorted
        affected_packages (List[str]): Subset found in the affected set, same order
    """
    all_packages: List[str] = field(default_factory=list)
    affected_packages: List[str] = field(default_factory=list)

    @property
    def has_affected(self) -> bool:
        return bool(self.affected_packages)


def match_packages(all_packages: Sequence[str], membership_test: Callable[[str], bool]) -> Report:
    """Filter installed identifiers through ``membership_test``, keeping order."""
    packages = list(all_packages)
    return Report(
        all_packages=packages,
        affected_packages=[package for package in packages if membership_test(package)],
    )


def get_affected_packages(lockfile_path: Any, membership_test: Callable[[str], bool]) -> Report:
    """Read a lockfile and match its packages against ``membership_test``."""
    try:
        return match_packages(get_installed_packages(lockfile_path), membership_test)
    except SecurityCheckError:
        raise
    except Exception as e:
        raise SecurityCheckError(f"Error getting affected packages: {e}", ErrorCode.UNEXPECTED_ERROR) from e


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

class Reporter:
    """Renders a :class:`Report` as a console summary, JSON or CSV.

    Attributes:
        format_type (str): Output format - 'table', 'json', or 'csv'
        console (Console): Rich console used for human output
    """

    def __init__(self, format_type: str = "table", console: Optional[Console] = None):
        self.format_type = format_type
        self.console = console or Console()

    def generate_report(self, report: Report, lockfile_path: Path, affected_set: AffectedSet,
                        output_file: Optional[Path] = None) -> None:
        """Print or save the report in the configured format.

        Args:
            report: Matching result
            lockfile_path: Lockfile that was checked
            affected_set: Used to show the newest listed version of each hit
            output_file: Optional file path for json/csv output (stdout if None)
        """
        if self.format_type == "json":
            content = self._generate_json_report(report, lockfile_path)
        elif self.format_type == "csv":
            content = self._generate_csv_report(report)
        else:
            self._print_summary(report, affected_set)
            return

        if output_file:
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(content)
            self.console.print(f"📄 Report saved to: {escape(sanitize_path_for_display(output_file))}")
        else:
            self.console.out(content, highlight=False)

    def _print_summary(self, report: Report, affected_set: AffectedSet) -> None:
        console = self.console
        console.print(f"📦 Total packages found: {len(report.all_packages)}")
        console.print(f"⚠️  Affected packages: {len(report.affected_packages)}")

        if not report.has_affected:
            console.print("\n[bold green]✅ No affected packages found! Your project appears to be secure.[/bold green]")
            return

        table = Table(title="🚨 AFFECTED PACKAGES DETECTED", title_style="bold red")
        table.add_column("Package Name", style="cyan")
        table.add_column("Installed Version", style="bold red")
        table.add_column("Listed Versions", style="magenta")
        table.add_column("Newest Listed", style="dim")

        for full_name in report.affected_packages:
            name, version = split_identifier(full_name)
            listed = affected_set.get_packages_by_name(name)
            latest = affected_set.get_latest_version(name)
            table.add_row(
                escape(name),
                escape(version),
                escape(", ".join(record.version for record in listed)),
                escape(latest.version) if latest else "-",
            )

        console.print()
        console.print(table)
        console.print("\n💡 Recommendation: Update these packages to secure versions")

    def _generate_json_report(self, report: Report, lockfile_path: Path) -> str:
        report_data = {
            "lockfile": sanitize_path_for_display(lockfile_path),
            "total_packages": len(report.all_packages),
            "affected_count": len(report.affected_packages),
            "all_packages": report.all_packages,
            "affected_packages": report.affected_packages,
        }
        return json.dumps(report_data, indent=2)

    def _generate_csv_report(self, report: Report) -> str:
        affected = set(report.affected_packages)
        output = ["Package Name,Version,is_affected"]
        for full_name in report.all_packages:
            name, version = split_identifier(full_name)
            is_affected = "true" if full_name in affected else "false"
            output.append(",".join([self._csv_escape(name), self._csv_escape(version), is_affected]))
        return "\n".join(output)

    def _csv_escape(self, value: str) -> str:
        """Quote one CSV field.

        SECURITY: Scoped names start with ``@``, which spreadsheets read as a
        formula. Fields starting with a formula trigger get a leading ``'``.
        """
        if value.startswith(CSV_FORMULA_TRIGGERS):
            value = f"'{value}"
        if any(ch in value for ch in ',"\n'):
            value = '"{}"'.format(value.replace('"', '""'))
        return value


def _confirm_overwrite(path: Path) -> bool:
    Console(stderr=True).print(
        f"[yellow]⚠️  {escape(sanitize_path_for_display(path))} already exists[/yellow]"
    )
    try:
        answer = input("Overwrite? [y/N]: ")
    except (KeyboardInterrupt, EOFError):
        return False
    return answer.strip().lower() in ("y", "yes")


def validate_output_path(output_path: Path, allow_overwrite: bool = False) -> Path:
    """Resolve the ``--output`` report path and check it is safe to write.

    SECURITY: Device, procfs/sysfs and UNC locations are refused, and a
    non-empty existing report is only replaced after confirmation.

    Raises:
        ValueError: If the report cannot or should not be written there
    """
    try:
        target = output_path.resolve()
        text = str(target)
        blocked = [pattern for pattern in RESTRICTED_OUTPUT_PATTERNS if pattern in text]
        if blocked:
            raise ValueError(f"Refusing to write report under {blocked[0]!r}")

        if target.exists():
            if not target.is_file():
                raise ValueError(f"Report path exists and is not a regular file: {target}")
            if target.stat().st_size and not allow_overwrite and not _confirm_overwrite(target):
                raise ValueError("Report not written: overwrite declined")

        if not target.parent.is_dir():
            raise ValueError(f"Report directory does not exist: {target.parent}")
    except (OSError, RuntimeError) as e:
        raise ValueError(f"Invalid output path: {e}") from e

    return target


# ---------------------------------------------------------------------------
# Command line interface
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lockcheck",
        description="Check a package-lock.json for known-compromised npm package versions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ./package-lock.json             # Check a lockfile
  %(prog)s path/to/project/                # Looks for package-lock.json in the directory
  %(prog)s . --format json -o report.json  # JSON report to file
  %(prog)s --list-affected ctrl            # List known-compromised packages

Exit codes:
  0 - No affected packages found
  1 - Affected packages found or an error occurred
        """
    )

    parser.add_argument('path', nargs='?', help='Lockfile, or directory containing one')
    parser.add_argument('-f', '--format', choices=['table', 'json', 'csv'], default='table',
                        help='Output format (default: table)')
    parser.add_argument('-o', '--output', type=Path, help='Write json/csv report to file')
    parser.add_argument('--force', action='store_true',
                        help='Overwrite an existing output file without confirmation')
    parser.add_argument('--lockfile-name', default=DEFAULT_LOCKFILE_NAME,
                        help=f'Lockfile looked up when PATH is a directory (default: {DEFAULT_LOCKFILE_NAME})')
    parser.add_argument('--list-affected', nargs='?', const='', metavar='FILTER',
                        help='List known-compromised packages and versions, then exit')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Verbose logging to stderr')
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _list_affected(console: Console, affected_set: AffectedSet, name_filter: str) -> int:
    names = affected_set.get_all_package_names()
    if name_filter:
        names = [name for name in names if name_filter.lower() in name.lower()]
        if not names:
            console.print(f"[yellow]No affected packages matching filter: '{escape(name_filter)}'[/yellow]")
            return 0
        console.print(f"[bright_cyan]Filtered results for: '{escape(name_filter)}'[/bright_cyan]\n")

    shown = 0
    for name in names:
        latest = affected_set.get_latest_version(name)
        console.print(f"[bold white]📦 {escape(name)}[/bold white]")
        for record in affected_set.get_packages_by_name(name):
            marker = " [dim](newest listed)[/dim]" if record is latest else ""
            console.print(f"  🔴 {escape(record.version)}{marker}")
            shown += 1

    console.print("[dim]" + "═" * 60 + "[/dim]")
    console.print(f"[bold bright_green]📊 Summary:[/bold bright_green] "
                  f"[bold white]{len(names)}[/bold white] packages, [bold white]{shown}[/bold white] versions")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point.

    Returns:
        Process exit code: 0 when no affected packages were found, 1 when
        any were found or an error occurred
    """
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else list(argv)

    if not argv:
        parser.print_help()
        return 0

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help exits 0, usage errors are reported as a plain failure
        return 0 if e.code in (0, None) else 1

    _configure_logging(args.verbose)
    console = Console()
    err_console = Console(stderr=True)

    try:
        affected_set = load_affected_set()

        if args.list_affected is not None:
            return _list_affected(console, affected_set, args.list_affected)

        if args.path is None:
            parser.print_help()
            return 0

        validated_output = None
        if args.output:
            try:
                validated_output = validate_output_path(args.output, allow_overwrite=args.force)
            except ValueError as e:
                err_console.print(f"[red]❌ Error: {escape(str(e))}[/red]")
                return 1
            if args.format == 'table':
                args.format = 'csv'

        raw_path = validate_arguments([args.path])
        lockfile_path = resolve_lockfile_path(raw_path, args.lockfile_name)

        if args.format == 'table':
            console.print("[bold bright_cyan]🔍 Lockfile Security Checker[/bold bright_cyan]")
            console.print("=" * 50)
            console.print(f"📁 Checking: {escape(sanitize_path_for_display(lockfile_path))}\n", soft_wrap=True)

        report = get_affected_packages(lockfile_path, affected_set.has_package)
        logger.debug("%d packages checked, %d affected", len(report.all_packages), len(report.affected_packages))

        Reporter(args.format, console).generate_report(report, lockfile_path, affected_set, validated_output)
        return 1 if report.has_affected else 0

    except SecurityCheckError as e:
        err_console.print(f"[red]❌ Error [{e.code.value}]: {escape(e.message)}[/red]")
        return 1
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Check interrupted by user[/yellow]")
        return 1
    except Exception as e:
        err_console.print(f"[red]❌ Error [{ErrorCode.UNEXPECTED_ERROR.value}]: {escape(str(e))}[/red]")
        if args.verbose:
            import traceback
            err_console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
