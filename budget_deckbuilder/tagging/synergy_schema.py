from __future__ import annotations

# Standard library imports
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Literal, Optional

# Third-party imports
import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from ..exceptions import SynergyRulesError
from ..path_util import synergy_rules_path, tribes_path

TierName = Literal["common", "uncommon", "rare", "mythic"]


class SynergyRuleModel(BaseModel):
    anchor_tags: List[str] = Field(min_length=1)
    card_tag: str = Field(min_length=1)
    score: float
    description: str = ""


class SynergyRulesModel(BaseModel):
    list_version: str
    generated_at: Optional[str] = None
    rules: List[SynergyRuleModel] = Field(default_factory=list)


class TribeTierModel(BaseModel):
    base_bonus: float
    double_bonus: float
    threshold: int = Field(ge=0)


class TribesModel(BaseModel):
    list_version: str
    default_tier: TierName = "uncommon"
    tiers: Dict[TierName, TribeTierModel]
    count_overrides: Dict[TierName, int] = Field(default_factory=dict)
    tribal_types: List[str] = Field(default_factory=list)
    tribes: Dict[str, TierName] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _all_tiers_defined(self) -> "TribesModel":
        missing = {"common", "uncommon", "rare", "mythic"} - set(self.tiers)
        if missing:
            raise ValueError(f"tiers missing definitions for: {sorted(missing)}")
        return self


def _read_yaml(path: Path) -> object:
    if not path.exists():
        raise SynergyRulesError(str(path), "file not found")
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise SynergyRulesError(str(path), "invalid YAML", {"error": str(exc)}) from exc


def load_and_validate_rules(path: str | Path | None = None) -> SynergyRulesModel:
    p = synergy_rules_path(path)
    obj = _read_yaml(p)
    try:
        return SynergyRulesModel.model_validate(obj)
    except ValidationError as exc:
        raise SynergyRulesError(str(p), "schema validation failed", {"errors": exc.errors()}) from exc


def load_and_validate_tribes(path: str | Path | None = None) -> TribesModel:
    p = tribes_path(path)
    obj = _read_yaml(p)
    try:
        return TribesModel.model_validate(obj)
    except ValidationError as exc:
        raise SynergyRulesError(str(p), "schema validation failed", {"errors": exc.errors()}) from exc


@lru_cache(maxsize=4)
def _cached_rules(resolved: str) -> SynergyRulesModel:
    return load_and_validate_rules(resolved)


@lru_cache(maxsize=4)
def _cached_tribes(resolved: str) -> TribesModel:
    return load_and_validate_tribes(resolved)


def cached_rules(path: str | Path | None = None) -> SynergyRulesModel:
    return _cached_rules(str(synergy_rules_path(path)))


def cached_tribes(path: str | Path | None = None) -> TribesModel:
    return _cached_tribes(str(tribes_path(path)))


def clear_cache() -> None:
    _cached_rules.cache_clear()
    _cached_tribes.cache_clear()


__all__ = [
    "SynergyRuleModel",
    "SynergyRulesModel",
    "TribeTierModel",
    "TribesModel",
    "load_and_validate_rules",
    "load_and_validate_tribes",
    "cached_rules",
    "cached_tribes",
    "clear_cache",
]
