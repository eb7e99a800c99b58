# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Tests for the country alias table and name reconciliation."""

from pathlib import Path

import pandas as pd
import pytest

from workflow.scripts.country_names import (
    canonicalize,
    canonicalize_series,
    load_country_aliases,
    unmatched_countries,
)

REPO_ROOT = Path(__file__).resolve().parents[1]


def write_aliases(tmp_path, text: str) -> Path:
    path = tmp_path / "aliases.csv"
    path.write_text(text)
    return path


class TestLoadCountryAliases:
    def test_reads_mapping_and_skips_comments(self, tmp_path):
        path = write_aliases(
            tmp_path,
            "# reviewed aliases\nalias,canonical\nUSA,United States of America\n"
            "\"Congo, Dem. Rep.\",Democratic Republic of the Congo\n"
            " UK ,United Kingdom\n",
        )
        aliases = load_country_aliases(path)
        assert aliases == {
            "USA": "United States of America",
            "Congo, Dem. Rep.": "Democratic Republic of the Congo",
            "UK": "United Kingdom",
        }

    def test_duplicate_alias_rejected(self, tmp_path):
        path = write_aliases(tmp_path, "alias,canonical\nUSA,A\nUSA,B\n")
        with pytest.raises(ValueError, match="USA"):
            load_country_aliases(path)

    def test_missing_column_rejected(self, tmp_path):
        path = write_aliases(tmp_path, "name,canonical\nUSA,A\n")
        with pytest.raises(ValueError, match="alias"):
            load_country_aliases(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_country_aliases(tmp_path / "absent.csv")

    def test_shipped_table_is_valid(self):
        aliases = load_country_aliases(REPO_ROOT / "data" / "country_aliases.csv")
        assert aliases
        assert not set(aliases.values()) & set(aliases)


class TestCanonicalize:
    aliases = {"USA": "United States of America", "UK": "United Kingdom"}

    def test_listed_alias(self):
        assert canonicalize("USA", self.aliases) == "United States of America"

    def test_unlisted_name_passes_through(self):
        assert canonicalize("France", self.aliases) == "France"

    def test_series_keeps_missing_names(self):
        names = pd.Series(["UK", None, "France"])
        out = canonicalize_series(names, self.aliases)
        assert out[0] == "United Kingdom"
        assert pd.isna(out[1])
        assert out[2] == "France"


class TestUnmatchedCountries:
    def test_reports_names_absent_from_yield_data(self, caplog):
        aliases = {"USA": "United States of America"}
        with caplog.at_level("WARNING"):
            unmatched = unmatched_countries(
                ["USA", "Atlantis", "France", "Lemuria"],
                ["United States of America", "France", None],
                aliases,
            )
        assert unmatched == ["Atlantis", "Lemuria"]
        assert "Atlantis" in caplog.text

    def test_nothing_unmatched(self):
        assert unmatched_countries(["France"], ["France"], {}) == []
