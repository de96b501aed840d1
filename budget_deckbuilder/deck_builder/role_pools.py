from __future__ import annotations

from typing import Dict, List, Sequence

import pandas as pd

from .. import logging_util, settings
from ..type_definitions import Candidate, Policy, PoolStats, RolePool, RolePools, RoleTarget
from . import builder_constants as bc
from . import builder_utils as bu

logger = logging_util.get_logger(__name__)

__all__ = ["RolePoolBuilder"]


class RolePoolBuilder:
    """Partition scored candidates into per-role pools.

    Each pool keeps the candidates relevant to the role (role score at or above
    the relevance threshold), takes the top ``max * 3`` by role score, then
    weights ``selection_priority`` by the card-type multiplier and trims to
    ``max * 2``. Sorting is stable, so equal scores keep input order.

    Without a composition on the policy the default composition for the
    policy's target size is used.
    """

    def __init__(self, policy: Policy) -> None:
        policy.validate()
        self.policy = policy

    def composition(self) -> Dict[str, RoleTarget]:
        if self.policy.composition:
            return dict(self.policy.composition)
        return Policy.default_composition(self.policy.target_size)

    def _frame(self, candidates: Sequence[Candidate]) -> pd.DataFrame:
        rows = []
        for pos, cand in enumerate(candidates):
            row = {
                'pos': pos,
                'name': cand.name,
                'total': cand.total_score,
                'multiplier': bu.pool_type_multiplier(cand.card, self.policy),
            }
            for role in bc.ROLES:
                row[role] = float(cand.role_scores.get(role, 0.0))
            rows.append(row)
        return pd.DataFrame(rows, columns=['pos', 'name', 'total', 'multiplier', *bc.ROLES])

    def build(self, candidates: Sequence[Candidate]) -> RolePools:
        candidates = list(candidates)
        df = self._frame(candidates)
        pools: Dict[str, RolePool] = {}
        for role, bounds in self.composition().items():
            if role not in df.columns:
                logger.warning("role_pool_unknown_role role=%s", role)
                pools[role] = RolePool(role, (), bounds.target, bounds.min, bounds.max)
                continue
            relevant = df[df[role] >= settings.ROLE_RELEVANCE_THRESHOLD]
            top = bu.sort_by_priority(relevant, [role], [False]).head(bounds.max * settings.POOL_DEPTH_MULTIPLIER)
            weighted = top.assign(priority=top['total'] * top['multiplier'])
            weighted = bu.sort_by_priority(weighted, ['priority'], [False]).head(bounds.max * settings.POOL_TRIM_MULTIPLIER)
            members: List[Candidate] = [
                candidates[int(pos)].with_priority(float(priority))
                for pos, priority in zip(weighted['pos'], weighted['priority'])
            ]
            pools[role] = RolePool(
                role=role,
                candidates=tuple(members),
                target_count=bounds.target,
                min_count=bounds.min,
                max_count=bounds.max,
            )
            logger.debug("role_pool role=%s relevant=%d kept=%d", role, len(relevant), len(members))
        sizes = [len(p.candidates) for p in pools.values()]
        stats = PoolStats(
            total_candidates=len(candidates),
            average_candidates_per_role=(sum(sizes) / len(sizes)) if sizes else 0.0,
            roles=tuple(pools),
        )
        logger.info(
            "role_pools_built roles=%d candidates=%d avg_per_role=%.1f",
            len(pools), stats.total_candidates, stats.average_candidates_per_role,
        )
        return RolePools(pools=pools, all_candidates=tuple(candidates), stats=stats)
