"""Budget-constrained Commander deck assembly.

Scores a candidate pool against a commander, partitions it into role pools
and greedily assembles a fixed-size deck under a total budget and per-card
price cap, repairing budget and size overruns with an audit trail of
replacements and warnings.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
