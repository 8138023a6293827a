"""Path-based sensitivity classification for discovered directories.

Flags ``node_modules`` directories that live where an application or the
OS may depend on them, so they are never pre-selected for deletion.

The rules are conservative and hand-maintained: a false positive only
costs the operator a manual toggle, a false negative can break an
installed application. The allow-lists below are explicit on purpose and
must not be widened into a general heuristic.

Rules, in order:

1. A hidden segment anywhere below the home directory is sensitive,
   except ``.npm`` and ``.pnpm`` directly under home.
2. Anything below an application-data root (XDG config/data/cache,
   macOS Library, Windows AppData and ProgramData) is sensitive, except
   the package-manager caches in ``APPDATA_CACHE_ALLOWLIST`` directly
   under roots that permit them.
3. Anything inside an application bundle (``Applications/<name>.app``)
   is sensitive.
4. A network (UNC) path with a hidden segment after the share name is
   sensitive.
5. Everything else is safe.

Classification performs no I/O: environment facts are captured once in a
:class:`ClassifierContext`.
"""

import os
import posixpath
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from nodenuke.core.models import Sensitivity

# Hidden directories directly under home that are package-manager caches.
HOME_CACHE_ALLOWLIST: tuple[str, ...] = (".npm", ".pnpm")

# Package-manager cache names allowed directly under an application-data root.
APPDATA_CACHE_ALLOWLIST: tuple[str, ...] = (".cache", ".npm", ".pnpm")

# Application-data roots relative to home: (relative path, allows caches).
HOME_APPDATA_ROOTS: tuple[tuple[str, bool], ...] = (
    (".config", True),
    (".local/share", True),
    (".cache", True),
    ("library/application support", True),
    ("library/caches", True),
)

# Environment variables naming application-data roots: (variable, allows caches).
ENV_APPDATA_ROOTS: tuple[tuple[str, bool], ...] = (
    ("XDG_CONFIG_HOME", True),
    ("XDG_DATA_HOME", True),
    ("XDG_CACHE_HOME", True),
    ("APPDATA", False),
    ("LOCALAPPDATA", True),
    ("PROGRAMDATA", True),
)

# Path fragments recognised as Windows AppData even when the variables are unset.
APPDATA_MARKERS: tuple[tuple[str, bool], ...] = (
    ("/appdata/roaming", False),
    ("/appdata/local", True),
    ("/appdata/locallow", False),
)

_HIDDEN_MARKER = "."
_BUNDLE_PARENT = "applications"
_BUNDLE_SUFFIX = ".app"


def normalize_path(path: str) -> str:
    """Normalise a path string for case-insensitive, cross-platform matching.

    Backslashes become forward slashes, a drive-letter prefix is dropped,
    the result is lowercased and a trailing slash is removed.

    Args:
        path: Path string in any platform's notation.

    Returns:
        Normalised path string.
    """
    norm = path.replace("\\", "/").lower()
    if len(norm) >= 3 and norm[1] == ":" and norm[2] == "/":
        norm = norm[2:]
    if len(norm) > 1:
        norm = norm.rstrip("/")
    return norm


def _is_unc(path: str) -> bool:
    return path.startswith("\\\\") or path.startswith("//")


def _is_hidden(segment: str) -> bool:
    return segment.startswith(_HIDDEN_MARKER) and segment not in (".", "..")


def _relative_parts(norm: str, root: str) -> list[str] | None:
    """Return the segments of ``norm`` below ``root``, or None if outside it."""
    if not root or root == "/":
        return None
    if norm == root:
        return []
    if norm.startswith(root + "/"):
        return [part for part in norm[len(root) + 1 :].split("/") if part]
    return None


@dataclass(frozen=True, slots=True)
class AppDataRoot:
    """An application-data directory in normalised form.

    Attributes:
        path: Normalised absolute path of the root.
        allows_caches: Whether package-manager caches directly under the
            root are exempt.
    """

    path: str
    allows_caches: bool


@dataclass(frozen=True, slots=True)
class ClassifierContext:
    """Environment facts the classifier needs, captured up front.

    Attributes:
        home: Normalised home directory, None if unknown.
        cwd: Normalised working directory used to absolutise relative paths.
        app_data_roots: Known application-data roots.
    """

    home: str | None
    cwd: str
    app_data_roots: tuple[AppDataRoot, ...]

    @classmethod
    def build(
        cls,
        home: str | None,
        cwd: str = "/",
        environ: Mapping[str, str] | None = None,
    ) -> "ClassifierContext":
        """Build a context from explicit values.

        Args:
            home: Home directory in any notation, or None.
            cwd: Working directory for relative paths.
            environ: Environment variables consulted for application-data
                roots. Defaults to an empty mapping.

        Returns:
            A ClassifierContext with normalised values.
        """
        env = environ or {}
        norm_home = normalize_path(home) if home else None

        roots: list[AppDataRoot] = []
        if norm_home:
            for rel, allows_caches in HOME_APPDATA_ROOTS:
                roots.append(AppDataRoot(f"{norm_home}/{rel}", allows_caches))
        for var, allows_caches in ENV_APPDATA_ROOTS:
            value = env.get(var)
            if value:
                roots.append(AppDataRoot(normalize_path(value), allows_caches))

        return cls(home=norm_home, cwd=normalize_path(cwd), app_data_roots=tuple(roots))

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> "ClassifierContext":
        """Build a context from the process environment.

        The home directory comes from ``HOME``, then ``USERPROFILE``, then
        :meth:`Path.home`.
        """
        env = os.environ if environ is None else environ
        home = env.get("HOME") or env.get("USERPROFILE")
        if not home:
            try:
                home = str(Path.home())
            except RuntimeError:
                home = None
        return cls.build(home, cwd=os.getcwd(), environ=env)


_default_context: ClassifierContext | None = None


def get_default_context() -> ClassifierContext:
    """Get the process-wide context, building it on first use."""
    global _default_context
    if _default_context is None:
        _default_context = ClassifierContext.from_environment()
    return _default_context


def _appdata_rule(norm: str, context: ClassifierContext) -> tuple[bool, set[str]]:
    """Apply the application-data rule.

    Returns:
        Tuple of (sensitive, exempt cache directories). The exempt set holds
        the normalised paths of allow-listed caches the path passes through,
        so the hidden-segment rule can honour the more specific exception.
    """
    candidates: list[tuple[str, list[str], bool]] = []
    for root in context.app_data_roots:
        parts = _relative_parts(norm, root.path)
        if parts is not None:
            candidates.append((root.path, parts, root.allows_caches))

    for marker, allows_caches in APPDATA_MARKERS:
        idx = norm.find(marker)
        if idx == -1:
            continue
        end = idx + len(marker)
        if end == len(norm) or norm[end] == "/":
            parts = [part for part in norm[end:].split("/") if part]
            candidates.append((norm[:end], parts, allows_caches))

    sensitive = False
    exempt: set[str] = set()
    for root_path, parts, allows_caches in candidates:
        if allows_caches and parts and parts[0] in APPDATA_CACHE_ALLOWLIST:
            exempt.add(f"{root_path}/{parts[0]}")
            continue
        sensitive = True
    return sensitive, exempt


def _home_rule(norm: str, context: ClassifierContext, exempt: set[str]) -> bool:
    if context.home is None:
        return False
    parts = _relative_parts(norm, context.home)
    if not parts:
        return False
    for index, segment in enumerate(parts):
        if not _is_hidden(segment):
            continue
        if index == 0 and segment in HOME_CACHE_ALLOWLIST:
            continue
        if f"{context.home}/{'/'.join(parts[: index + 1])}" in exempt:
            continue
        return True
    return False


def _bundle_rule(norm: str) -> bool:
    parts = norm.split("/")
    # The bundle must contain something; the bundle directory itself does not count.
    for index in range(len(parts) - 2):
        if parts[index] == _BUNDLE_PARENT and parts[index + 1].endswith(_BUNDLE_SUFFIX):
            return True
    return False


def _unc_rule(original: str) -> bool:
    if not _is_unc(original):
        return False
    # "//server/share/..." splits into "", "", server, share, rest...
    parts = original.replace("\\", "/").split("/")
    return any(_is_hidden(part) for part in parts[4:] if part)


def classify(path: str | Path, context: ClassifierContext | None = None) -> Sensitivity:
    """Classify a directory path as safe or sensitive.

    Deterministic and side-effect free for a given context.

    Args:
        path: Path of a discovered directory, absolute or relative.
        context: Environment facts; defaults to the process environment.

    Returns:
        Sensitivity.SENSITIVE if any rule flags the path, else Sensitivity.SAFE.
    """
    ctx = context or get_default_context()
    original = str(path)

    norm = normalize_path(original)
    if not _is_unc(original):
        if not norm.startswith("/"):
            norm = posixpath.join(ctx.cwd, norm)
        norm = posixpath.normpath(norm)

    appdata_sensitive, exempt = _appdata_rule(norm, ctx)
    if _home_rule(norm, ctx, exempt):
        return Sensitivity.SENSITIVE
    if appdata_sensitive:
        return Sensitivity.SENSITIVE
    if _bundle_rule(norm):
        return Sensitivity.SENSITIVE
    if _unc_rule(original):
        return Sensitivity.SENSITIVE
    return Sensitivity.SAFE


def is_sensitive(path: str | Path, context: ClassifierContext | None = None) -> bool:
    """Check if a path is classified as sensitive.

    Args:
        path: Path of a discovered directory.
        context: Environment facts; defaults to the process environment.

    Returns:
        True if the path is sensitive.
    """
    return classify(path, context) == Sensitivity.SENSITIVE
