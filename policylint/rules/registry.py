# Closed registry of rules, in reporting order.

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from policylint.rules.base import Rule
from policylint.rules.broad_catch import OVERLY_BROAD_CATCH
from policylint.rules.null_return import NULL_RETURN_AFTER_CATCH
from policylint.rules.rethrow_hygiene import RETHROW_HYGIENE
from policylint.rules.unbounded_parallel import UNBOUNDED_PARALLEL_ITERATION

RULES: Mapping[str, Rule] = MappingProxyType(
    {
        rule.id: rule
        for rule in (
            RETHROW_HYGIENE,
            NULL_RETURN_AFTER_CATCH,
            OVERLY_BROAD_CATCH,
            UNBOUNDED_PARALLEL_ITERATION,
        )
    }
)


def get_rule(rule_id: str) -> Rule:
    """Look up a rule by id; raises KeyError for unknown ids."""
    return RULES[rule_id]
