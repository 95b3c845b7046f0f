"""Tests for specifier resolution and extension guessing."""

import pytest

from depmap_cli.errors import ImporterPathError, ResolutionError, RootEscapeError
from depmap_cli.resolver import (
    check_importer_path,
    guess_possible_extensions,
    is_directory_specifier,
    is_relative_specifier,
    resolve_import_path,
    to_node_id,
)


class TestResolveImportPath:
    """Tests for resolve_import_path."""

    @pytest.mark.parametrize("specifier,importer,expected", [
        ("./b", "./src/a.ts", "./src/b"),
        ("../lib/x.js", "./src/app/a.ts", "./src/lib/x.js"),
        ("./nested/deep/c", "./a.ts", "./nested/deep/c"),
        ("./", "./src/a.ts", "./src"),
        (".", "./src/a.ts", "./src"),
        ("..", "./src/app/a.ts", "./src"),
        ("../..", "./src/app/a.ts", "./"),
        ("./x/../y", "./src/a.ts", "./src/y"),
    ])
    def test_relative_specifiers(self, specifier: str, importer: str, expected: str):
        assert resolve_import_path(specifier, importer) == expected

    @pytest.mark.parametrize("specifier", ["react", "@scope/pkg", "lodash/fp", "node:fs"])
    def test_external_specifiers_unchanged(self, specifier: str):
        assert resolve_import_path(specifier, "./src/a.ts") == specifier

    def test_root_relative_specifier(self):
        """Test a leading slash resolves from the project root."""
        assert resolve_import_path("/src/util", "./deep/nested/a.ts") == "./src/util"
        assert resolve_import_path("/", "./a.ts") == "./"

    def test_escape_above_root(self):
        with pytest.raises(RootEscapeError) as exc_info:
            resolve_import_path("../outside", "./a.ts", "/projects/app")

        message = str(exc_info.value)
        assert '"../outside"' in message
        assert '"./a.ts"' in message
        assert "/projects/app" in message
        assert exc_info.value.code == "ROOT_ESCAPE"

    def test_escape_names_specifier_and_importer(self):
        with pytest.raises(RootEscapeError) as exc_info:
            resolve_import_path("../../outside", "./src/file.ts")

        assert exc_info.value.specifier == "../../outside"
        assert exc_info.value.importer == "./src/file.ts"

    def test_resolution_is_repeatable(self):
        first = resolve_import_path("../x/y.js", "./a/b/c.ts")
        assert resolve_import_path("../x/y.js", "./a/b/c.ts") == first == "./a/x/y.js"

    def test_escape_to_exactly_parent(self):
        with pytest.raises(RootEscapeError):
            resolve_import_path("../..", "./src/a.ts")

    def test_escape_is_a_resolution_error(self):
        with pytest.raises(ResolutionError):
            resolve_import_path("../../x", "./src/a.ts")

    def test_invalid_importer_rejected_for_externals_too(self):
        with pytest.raises(ImporterPathError):
            resolve_import_path("react", "/abs/a.ts")


class TestImporterPath:
    """Tests for importer path validation."""

    def test_valid_importer(self):
        check_importer_path("./src/a.ts")
        check_importer_path("./a.ts")

    def test_absolute_importer(self):
        with pytest.raises(ImporterPathError, match="is absolute"):
            check_importer_path("/src/a.ts")

    @pytest.mark.parametrize("importer", ["src/a.ts", "./src//a.ts", "./src/./a.ts", "./src/x/../a.ts"])
    def test_unnormalized_importer(self, importer: str):
        with pytest.raises(ImporterPathError, match="not normalized"):
            check_importer_path(importer)

    def test_parent_segment_importer(self):
        with pytest.raises(ImporterPathError, match="cannot contain .. segments"):
            check_importer_path("./../a.ts")


class TestGuessPossibleExtensions:
    """Tests for guess_possible_extensions."""

    def test_js_maps_to_ts_sibling(self):
        assert guess_possible_extensions("./src/a.js") == ["./src/a.js", "./src/a.ts"]

    def test_jsx_maps_to_tsx_sibling(self):
        assert guess_possible_extensions("./src/a.jsx") == ["./src/a.jsx", "./src/a.tsx"]

    def test_module_extensions(self):
        assert guess_possible_extensions("./a.mjs") == ["./a.mjs", "./a.mts"]
        assert guess_possible_extensions("./a.cjs") == ["./a.cjs", "./a.cts"]

    def test_no_extension(self):
        assert guess_possible_extensions("./src/util") == [
            "./src/util.ts",
            "./src/util.js",
            "./src/util/index.ts",
            "./src/util/index.js",
        ]

    def test_unrecognized_extension_treated_as_bare(self):
        assert guess_possible_extensions("./src/a.service") == [
            "./src/a.service.ts",
            "./src/a.service.js",
            "./src/a.service/index.ts",
            "./src/a.service/index.js",
        ]

    def test_directory_path(self):
        assert guess_possible_extensions("./src/lib/") == [
            "./src/lib/index.ts",
            "./src/lib/index.js",
        ]

    def test_candidates_are_distinct(self):
        for path in ("./a", "./a.js", "./a.jsx", "./dir/", "./a.b.c"):
            candidates = guess_possible_extensions(path)
            assert len(candidates) == len(set(candidates))
            assert candidates


def test_is_relative_specifier():
    assert is_relative_specifier("./a")
    assert is_relative_specifier("../a")
    assert is_relative_specifier("/a")
    assert is_relative_specifier(".")
    assert not is_relative_specifier("react")
    assert not is_relative_specifier("@scope/pkg")


def test_is_directory_specifier():
    assert is_directory_specifier("./lib/")
    assert is_directory_specifier(".")
    assert is_directory_specifier("..")
    assert is_directory_specifier("../..")
    assert not is_directory_specifier("./lib")
    assert not is_directory_specifier("./.hidden")


def test_to_node_id():
    assert to_node_id("src/a.ts") == "./src/a.ts"
    assert to_node_id("./src/./a.ts") == "./src/a.ts"
    assert to_node_id(".") == "./"
