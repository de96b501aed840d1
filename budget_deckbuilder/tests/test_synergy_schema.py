from __future__ import annotations

from pathlib import Path

import pytest

from budget_deckbuilder.exceptions import SynergyRulesError
from budget_deckbuilder.tagging.synergy_schema import (
    cached_rules,
    load_and_validate_rules,
    load_and_validate_tribes,
)


def test_rules_yaml_ok(tmp_path: Path):
    path = tmp_path / "rules.yml"
    path.write_text(
        "list_version: '0.1.0'\n"
        "rules:\n"
        "  - anchor_tags: [tokens]\n"
        "    card_tag: token_maker\n"
        "    score: 12\n",
        encoding="utf-8",
    )
    model = load_and_validate_rules(path)
    assert model.rules[0].card_tag == "token_maker"
    assert model.rules[0].description == ""


def test_rules_yaml_invalid_syntax(tmp_path: Path):
    path = tmp_path / "broken.yml"
    path.write_text("rules: [\n  - {anchor_tags: [x]\n", encoding="utf-8")
    with pytest.raises(SynergyRulesError):
        load_and_validate_rules(path)


def test_rules_schema_violation(tmp_path: Path):
    path = tmp_path / "bad.yml"
    path.write_text("list_version: '1'\nrules:\n  - anchor_tags: []\n    score: 3\n", encoding="utf-8")
    with pytest.raises(SynergyRulesError) as exc:
        load_and_validate_rules(path)
    assert exc.value.code == "RULES_INVALID"


def test_missing_file(tmp_path: Path):
    with pytest.raises(SynergyRulesError):
        load_and_validate_rules(tmp_path / "nope.yml")


def test_tribes_require_all_tiers(tmp_path: Path):
    path = tmp_path / "tribes.yml"
    path.write_text(
        "list_version: '1'\n"
        "tiers:\n"
        "  common: {base_bonus: 60, double_bonus: 20, threshold: 50}\n",
        encoding="utf-8",
    )
    with pytest.raises(SynergyRulesError):
        load_and_validate_tribes(path)


def test_env_override_is_honoured(tmp_path: Path, monkeypatch):
    path = tmp_path / "env_rules.yml"
    path.write_text("list_version: 'env'\nrules: []\n", encoding="utf-8")
    monkeypatch.setenv("SYNERGY_RULES_PATH", str(path))
    assert cached_rules().list_version == "env"


def test_packaged_tables_validate():
    assert load_and_validate_rules().list_version
    tribes = load_and_validate_tribes()
    assert set(tribes.tiers) == {"common", "uncommon", "rare", "mythic"}
