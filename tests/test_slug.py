"""Tests for slug derivation and LIKE helpers."""

import pytest

from usageaudit.errors import MalformedPath
from usageaudit.slug import (
    ascii_lower,
    contains_pattern,
    contains_slug,
    derive_slug,
    esc_like,
    prefix_pattern,
    sanitize_key,
)


class TestSanitizeKey:
    def test_lowercases(self):
        assert sanitize_key("Akismet") == "akismet"

    def test_collapses_unsafe_runs(self):
        assert sanitize_key("Foo  Bar__Baz") == "foo-bar-baz"

    def test_strips_edge_hyphens(self):
        assert sanitize_key("--Foo!--") == "foo"

    def test_idempotent(self):
        assert sanitize_key(sanitize_key("My Plugin (Pro)")) == "my-plugin-pro"


class TestDeriveSlug:
    def test_directory_plugin_uses_top_level_dir(self):
        assert derive_slug("akismet/akismet.php") == "akismet"

    def test_nested_path_uses_top_level_only(self):
        assert derive_slug("woo/includes/main.php") == "woo"

    def test_single_file_keeps_whole_name(self):
        """No split on dot — the extension is normalised, not removed."""
        assert derive_slug("hello.php") == "hello-php"

    def test_directory_name_is_normalised(self):
        assert derive_slug("Contact_Form 7/wp-contact-form-7.php") == "contact-form-7"

    def test_leading_separator_ignored(self):
        assert derive_slug("/jetpack/jetpack.php") == "jetpack"

    def test_backslash_separator(self):
        assert derive_slug("Yoast\\wp-seo.php") == "yoast"

    def test_stable_across_calls(self):
        assert derive_slug("foo-bar/x.php") == derive_slug("foo-bar/x.php") == "foo-bar"

    def test_different_paths_may_collide(self):
        assert derive_slug("shared/one.php") == derive_slug("Shared/two.php")

    @pytest.mark.parametrize("path", ["", "   ", "///", "!!!/x.php"])
    def test_unusable_paths_raise(self, path):
        with pytest.raises(MalformedPath):
            derive_slug(path)


class TestLikeHelpers:
    def test_esc_like(self):
        assert esc_like("50%_off\\") == "50\\%\\_off\\\\"

    def test_contains_pattern(self):
        assert contains_pattern("a_b") == "%a\\_b%"

    def test_prefix_pattern(self):
        assert prefix_pattern("wp_foo") == "wp\\_foo%"

    def test_contains_slug_case_insensitive(self):
        assert contains_slug("Powered by AKISMET", "akismet")

    def test_contains_slug_folds_ascii_only(self):
        assert contains_slug("CAFÉ au lait", "café") is False
        assert contains_slug("CAFÉ au lait", "cafÉ") is True

    def test_ascii_lower(self):
        assert ascii_lower("WP_Ünïcode") == "wp_Ünïcode"

    def test_contains_slug_empty_text(self):
        assert not contains_slug(None, "akismet")
        assert not contains_slug("", "akismet")
