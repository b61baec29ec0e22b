"""Tests for dwh_schema.config -- settings and config-file helpers."""

from __future__ import annotations

import json
import os
from unittest.mock import patch

import pytest

from dwh_schema.config import (
    UpdaterSettings,
    expand_env,
    load_config_file,
    settings_from_config,
)


class TestUpdaterSettings:
    def test_defaults(self):
        s = UpdaterSettings()
        assert s.max_retries == 5
        assert s.backoff_seconds == 1.0
        assert s.blob_timeout_seconds == 3600
        assert s.blob_retry_initial_backoff == 5
        assert s.blob_retry_total == 5
        assert s.structure_blob_name == "TableStructure.str2"
        assert s.update_marker_blob_name == "TableStructure.updated"

    def test_rejects_negative_retries(self):
        with pytest.raises(ValueError, match="max_retries"):
            UpdaterSettings(max_retries=-1)

    def test_rejects_negative_backoff(self):
        with pytest.raises(ValueError, match="backoff_seconds"):
            UpdaterSettings(backoff_seconds=-0.1)

    def test_from_dict_ignores_unknown(self):
        s = UpdaterSettings.from_dict({"max_retries": 3, "bogus": 1})
        assert s.max_retries == 3


class TestSettingsFromConfig:
    def test_empty_config(self):
        assert settings_from_config({}) == UpdaterSettings()

    def test_reads_retry_and_blob_sections(self):
        s = settings_from_config({
            "retry": {"max_retries": "2", "backoff_seconds": 3},
            "blob": {
                "timeout_seconds": 120,
                "retry_initial_backoff": 1,
                "retry_total": 9,
                "structure_blob": "s.json",
                "update_marker_blob": "s.done",
            },
        })
        assert s.max_retries == 2
        assert s.backoff_seconds == 3.0
        assert s.blob_timeout_seconds == 120
        assert s.blob_retry_initial_backoff == 1
        assert s.blob_retry_total == 9
        assert s.structure_blob_name == "s.json"
        assert s.update_marker_blob_name == "s.done"


class TestExpandEnv:
    def test_expands(self):
        with patch.dict(os.environ, {"A": "1", "B": "2"}):
            assert expand_env("${A}-${B}") == "1-2"

    def test_plain_string_unchanged(self):
        assert expand_env("no vars") == "no vars"

    def test_missing_var_raises(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(KeyError, match="NOPE"):
                expand_env("${NOPE}")


class TestLoadConfigFile:
    def test_json(self, tmp_path):
        p = tmp_path / "c.json"
        p.write_text(json.dumps({"retry": {"max_retries": 1}}))
        assert load_config_file(p) == {"retry": {"max_retries": 1}}

    def test_yaml(self, tmp_path):
        p = tmp_path / "c.yml"
        p.write_text("retry:\n  max_retries: 1\n")
        assert load_config_file(str(p)) == {"retry": {"max_retries": 1}}

    def test_non_mapping_rejected(self, tmp_path):
        p = tmp_path / "c.json"
        p.write_text("[1, 2]")
        with pytest.raises(ValueError, match="mapping"):
            load_config_file(p)
