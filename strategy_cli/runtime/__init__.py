"""Standard-library-only evaluation runtime.

These modules are imported by the interpreter and copied into every compiled
strategy script, in the order listed in ``EMBEDDED_MODULES``.
"""

from strategy_cli.runtime import conditions, gating, outcomes, session

EMBEDDED_MODULES = (outcomes, conditions, gating, session)

__all__ = ["EMBEDDED_MODULES", "conditions", "gating", "outcomes", "session"]
