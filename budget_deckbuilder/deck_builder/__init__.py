__all__ = ['BudgetOptimizer', 'CandidateScorer', 'RolePoolBuilder', 'SynergyGraphBuilder', 'build_deck']


def __getattr__(name):
    # Lazy-load the heavy modules so importing a submodule stays cheap
    if name == 'BudgetOptimizer':
        from .budget_optimizer import BudgetOptimizer
        return BudgetOptimizer
    if name == 'CandidateScorer':
        from .candidate_scoring import CandidateScorer
        return CandidateScorer
    if name == 'RolePoolBuilder':
        from .role_pools import RolePoolBuilder
        return RolePoolBuilder
    if name == 'SynergyGraphBuilder':
        from .synergy_graph import SynergyGraphBuilder
        return SynergyGraphBuilder
    if name == 'build_deck':
        from .pipeline import build_deck
        return build_deck
    raise AttributeError(name)
