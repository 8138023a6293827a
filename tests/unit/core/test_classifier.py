"""Unit tests for the path sensitivity classifier."""

# pyright: reportPrivateUsage=false

import pytest
from nodenuke.core import classifier as classifier_module
from nodenuke.core.classifier import (
    ClassifierContext,
    classify,
    get_default_context,
    is_sensitive,
    normalize_path,
)
from nodenuke.core.models import Sensitivity


@pytest.fixture
def unix_ctx() -> ClassifierContext:
    return ClassifierContext.build("/home/u", cwd="/home/u/work")


@pytest.fixture
def windows_ctx() -> ClassifierContext:
    return ClassifierContext.build(
        "C:\\Users\\u",
        cwd="C:\\Users\\u",
        environ={
            "APPDATA": "C:\\Users\\u\\AppData\\Roaming",
            "LOCALAPPDATA": "C:\\Users\\u\\AppData\\Local",
        },
    )


class TestNormalizePath:
    """Tests for normalize_path."""

    def test_backslashes_and_drive_letter(self) -> None:
        """Windows notation is converted and the drive letter dropped."""
        assert normalize_path("C:\\Users\\Me\\Proj") == "/users/me/proj"

    def test_trailing_slash_removed(self) -> None:
        """Trailing separators are stripped, the root is kept."""
        assert normalize_path("/a/b/") == "/a/b"
        assert normalize_path("/") == "/"

    def test_lowercases(self) -> None:
        """Matching is case-insensitive."""
        assert normalize_path("/Applications/Foo.APP") == "/applications/foo.app"


class TestHomeRule:
    """Hidden directories below home."""

    def test_cache_project_is_sensitive(self, unix_ctx: ClassifierContext) -> None:
        """A project under ~/.cache is sensitive."""
        assert classify("/home/u/.cache/proj/node_modules", unix_ctx) == Sensitivity.SENSITIVE

    def test_npm_cache_is_safe(self, unix_ctx: ClassifierContext) -> None:
        """~/.npm is an allow-listed package-manager cache."""
        assert classify("/home/u/.npm/node_modules", unix_ctx) == Sensitivity.SAFE

    def test_pnpm_cache_is_safe(self, unix_ctx: ClassifierContext) -> None:
        """~/.pnpm is an allow-listed package-manager cache."""
        assert classify("/home/u/.pnpm/store/node_modules", unix_ctx) == Sensitivity.SAFE

    def test_other_hidden_dir_is_sensitive(self, unix_ctx: ClassifierContext) -> None:
        """Any other hidden directory under home is sensitive."""
        assert is_sensitive("/home/u/.vscode/extensions/x/node_modules", unix_ctx)

    def test_nested_hidden_dir_is_sensitive(self, unix_ctx: ClassifierContext) -> None:
        """A hidden segment deeper below home is sensitive too."""
        assert is_sensitive("/home/u/code/.tool/node_modules", unix_ctx)

    def test_plain_project_is_safe(self, unix_ctx: ClassifierContext) -> None:
        """An ordinary project directory is safe."""
        assert classify("/home/u/code/app/node_modules", unix_ctx) == Sensitivity.SAFE

    def test_relative_path_uses_cwd(self, unix_ctx: ClassifierContext) -> None:
        """Relative paths are resolved against the context's cwd."""
        assert classify("app/node_modules", unix_ctx) == Sensitivity.SAFE
        assert classify("../.config/app/node_modules", unix_ctx) == Sensitivity.SENSITIVE

    def test_outside_home_hidden_is_safe(self, unix_ctx: ClassifierContext) -> None:
        """Hidden segments outside home are not covered by the home rule."""
        assert classify("/srv/.builds/app/node_modules", unix_ctx) == Sensitivity.SAFE


class TestAppDataRule:
    """Application-data roots."""

    def test_xdg_config_is_sensitive(self, unix_ctx: ClassifierContext) -> None:
        """~/.config belongs to applications."""
        assert is_sensitive("/home/u/.config/app/node_modules", unix_ctx)

    def test_env_root_is_sensitive(self) -> None:
        """A root named by XDG_DATA_HOME is sensitive wherever it lives."""
        ctx = ClassifierContext.build("/home/u", environ={"XDG_DATA_HOME": "/data/xdg"})
        assert is_sensitive("/data/xdg/app/node_modules", ctx)

    def test_macos_library(self) -> None:
        """macOS Library application support is sensitive."""
        ctx = ClassifierContext.build("/Users/u")
        assert is_sensitive("/Users/u/Library/Application Support/Code/node_modules", ctx)

    def test_roaming_is_sensitive(self, windows_ctx: ClassifierContext) -> None:
        """AppData/Roaming is always sensitive, caches included."""
        assert is_sensitive("C:\\Users\\u\\AppData\\Roaming\\npm\\node_modules", windows_ctx)
        assert is_sensitive("C:\\Users\\u\\AppData\\Roaming\\.npm\\node_modules", windows_ctx)

    def test_local_app_is_sensitive(self, windows_ctx: ClassifierContext) -> None:
        """An application under AppData/Local is sensitive."""
        assert is_sensitive("C:\\Users\\u\\AppData\\Local\\Programs\\x\\node_modules", windows_ctx)

    @pytest.mark.parametrize("cache", [".cache", ".npm", ".pnpm"])
    def test_local_cache_is_safe(self, windows_ctx: ClassifierContext, cache: str) -> None:
        """Package-manager caches under AppData/Local are exempt."""
        path = f"C:\\Users\\u\\AppData\\Local\\{cache}\\node_modules"
        assert classify(path, windows_ctx) == Sensitivity.SAFE

    def test_marker_without_environment(self) -> None:
        """AppData is recognised from the path even with no variables set."""
        ctx = ClassifierContext.build(None)
        assert is_sensitive("D:\\Users\\x\\AppData\\Roaming\\app\\node_modules", ctx)
        assert not is_sensitive("D:\\Users\\x\\AppData\\Local\\.npm\\node_modules", ctx)

    @pytest.mark.parametrize("tail", ["SomeVendor\\App", ".cache", ".npm"])
    def test_locallow_is_sensitive(self, windows_ctx: ClassifierContext, tail: str) -> None:
        """AppData/LocalLow is application data and has no cache exemptions."""
        path = f"C:\\Users\\u\\AppData\\LocalLow\\{tail}\\node_modules"
        assert classify(path, windows_ctx) == Sensitivity.SENSITIVE
        assert is_sensitive(path, ClassifierContext.build(None))


class TestBundleAndUncRules:
    """Application bundles and network paths."""

    def test_inside_app_bundle(self) -> None:
        """Anything inside an .app bundle is sensitive."""
        ctx = ClassifierContext.build(None)
        path = "/Applications/Foo.app/Contents/Resources/node_modules"
        assert is_sensitive(path, ctx)

    def test_applications_dir_without_bundle(self) -> None:
        """A plain folder under Applications is not a bundle."""
        ctx = ClassifierContext.build(None)
        assert not is_sensitive("/Applications/tools/node_modules", ctx)

    def test_unc_hidden_segment(self) -> None:
        """A hidden segment after the share name is sensitive."""
        ctx = ClassifierContext.build(None)
        assert is_sensitive("\\\\server\\share\\.hidden\\node_modules", ctx)
        assert not is_sensitive("\\\\server\\share\\proj\\node_modules", ctx)


class TestDeterminism:
    """classify is total and deterministic."""

    @pytest.mark.parametrize(
        "path",
        [
            "/home/u/.npm/node_modules",
            "/home/u/.cache/proj/node_modules",
            "relative/node_modules",
            "",
            "/",
        ],
    )
    def test_same_input_same_output(self, unix_ctx: ClassifierContext, path: str) -> None:
        """Repeated calls agree."""
        assert classify(path, unix_ctx) == classify(path, unix_ctx)


class TestContextConstruction:
    """Tests for ClassifierContext factories."""

    def test_from_environment_prefers_home(self) -> None:
        """HOME wins over USERPROFILE."""
        ctx = ClassifierContext.from_environment({"HOME": "/home/a", "USERPROFILE": "C:\\Users\\b"})
        assert ctx.home == "/home/a"

    def test_from_environment_userprofile(self) -> None:
        """USERPROFILE is used when HOME is missing."""
        ctx = ClassifierContext.from_environment({"USERPROFILE": "C:\\Users\\b"})
        assert ctx.home == "/users/b"

    def test_default_context_is_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The process-wide context is built once."""
        monkeypatch.setattr(classifier_module, "_default_context", None)
        assert get_default_context() is get_default_context()
