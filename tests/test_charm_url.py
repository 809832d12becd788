"""Tests for charm URL parsing and inference (core/charm_url.py).

Every function under test is pure and needs no fixtures.
"""

from __future__ import annotations

import pytest

from charmctl.core.charm_url import infer_charm_url, parse_charm_url
from charmctl.core.models import CharmURL
from charmctl.exceptions import AmbiguousCharmError, InvalidCharmNameError


# ---------------------------------------------------------------------------
# parse_charm_url
# ---------------------------------------------------------------------------

class TestParseCharmURL:
    def test_full_store_url(self) -> None:
        curl = parse_charm_url("cs:~user/precise/mysql-33")
        assert curl == CharmURL("cs", "user", "precise", "mysql", 33)

    def test_local_url_without_revision(self) -> None:
        curl = parse_charm_url("local:oneiric/wordpress")
        assert curl == CharmURL("local", None, "oneiric", "wordpress", None)

    def test_hyphenated_name_keeps_suffix(self) -> None:
        curl = parse_charm_url("cs:precise/mysql-cluster-2")
        assert curl.name == "mysql-cluster"
        assert curl.revision == 2

    @pytest.mark.parametrize(
        ("url", "match"),
        [
            ("mysql", "invalid schema"),
            ("http:precise/mysql", "invalid schema"),
            ("local:~user/precise/mysql", "local charm URL with user name"),
            ("cs:~BAD!/precise/mysql", "invalid user name"),
            ("cs:mysql", "without series"),
            ("cs:a/b/c", "invalid form"),
            ("cs:Precise/mysql", "invalid series"),
            ("cs:precise/MySQL", "invalid charm name"),
            ("cs:precise/mysql-5-6", "invalid charm name"),
        ],
    )
    def test_invalid_urls(self, url: str, match: str) -> None:
        with pytest.raises(InvalidCharmNameError, match=match):
            parse_charm_url(url)

    def test_str_round_trips_canonical_form(self) -> None:
        text = "cs:~user/precise/mysql-33"
        assert str(parse_charm_url(text)) == text


# ---------------------------------------------------------------------------
# infer_charm_url
# ---------------------------------------------------------------------------

class TestInferCharmURL:
    @pytest.mark.parametrize(
        ("src", "expected"),
        [
            ("mysql", "cs:precise/mysql"),
            ("precise/mysql", "cs:precise/mysql"),
            ("oneiric/mysql", "cs:oneiric/mysql"),
            ("mysql-33", "cs:precise/mysql-33"),
            ("~user/mysql", "cs:~user/precise/mysql"),
            ("cs:~user/mysql", "cs:~user/precise/mysql"),
            ("local:mysql", "local:precise/mysql"),
            ("local:oneiric/mysql-2", "local:oneiric/mysql-2"),
            ("cs:precise/mysql", "cs:precise/mysql"),
        ],
    )
    def test_condensed_forms(self, src: str, expected: str) -> None:
        assert str(infer_charm_url(src, "precise")) == expected

    def test_no_explicit_revision_means_latest(self) -> None:
        assert infer_charm_url("mysql", "precise").revision is None

    def test_complete_url_ignores_default_series(self) -> None:
        curl = infer_charm_url("cs:oneiric/mysql", "precise")
        assert curl.series == "oneiric"

    def test_resolution_is_deterministic(self) -> None:
        first = infer_charm_url("~user/mysql-4", "precise")
        second = infer_charm_url("~user/mysql-4", "precise")
        assert first == second
        assert str(first) == str(second)

    @pytest.mark.parametrize("default_series", [None, ""])
    def test_missing_series_without_default_is_ambiguous(
        self, default_series: str | None,
    ) -> None:
        with pytest.raises(AmbiguousCharmError, match="mysql"):
            infer_charm_url("mysql", default_series)

    def test_explicit_series_needs_no_default(self) -> None:
        assert str(infer_charm_url("precise/mysql", None)) == "cs:precise/mysql"

    def test_empty_name_is_invalid(self) -> None:
        with pytest.raises(InvalidCharmNameError, match="empty"):
            infer_charm_url("  ", "precise")

    def test_inferred_error_names_original_input(self) -> None:
        with pytest.raises(InvalidCharmNameError, match=r"inferred from 'MySQL'"):
            infer_charm_url("MySQL", "precise")

    def test_local_with_user_is_invalid(self) -> None:
        with pytest.raises(InvalidCharmNameError, match="local charm URL with user name"):
            infer_charm_url("local:~user/mysql", "precise")

    def test_unknown_schema_is_invalid(self) -> None:
        with pytest.raises(InvalidCharmNameError, match="invalid schema"):
            infer_charm_url("ftp:mysql", "precise")

    def test_too_many_segments_is_invalid(self) -> None:
        with pytest.raises(InvalidCharmNameError, match="invalid form"):
            infer_charm_url("a/b/c", "precise")
