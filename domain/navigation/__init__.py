from domain.navigation.predicates import (
    AndPredicate,
    Comparison,
    ComparisonOperator,
    NotPredicate,
    OrPredicate,
    Predicate,
    ResultPredicates,
    ResultSelector,
)
from domain.navigation.rules import (
    NULL_STEP_IDENTIFIER,
    Destination,
    DirectStepNavigationRule,
    NavigationRuleEntry,
    NullStepIdentifier,
    PredicateSkipStepNavigationRule,
    PredicateStepNavigationRule,
    SkipStepNavigationRule,
    StepNavigationRule,
)

__all__ = [
    "AndPredicate",
    "Comparison",
    "ComparisonOperator",
    "NotPredicate",
    "OrPredicate",
    "Predicate",
    "ResultPredicates",
    "ResultSelector",
    "NULL_STEP_IDENTIFIER",
    "Destination",
    "DirectStepNavigationRule",
    "NavigationRuleEntry",
    "NullStepIdentifier",
    "PredicateSkipStepNavigationRule",
    "PredicateStepNavigationRule",
    "SkipStepNavigationRule",
    "StepNavigationRule",
]
