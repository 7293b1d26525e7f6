"""
Rules - The phased rule pipeline.

Small, independently testable rule objects grouped into four phases:
pre-validate, validate, apply and finalize.
"""

from .types import (
    BaseRule,
    FinalizeRule,
    Rule,
    RuleContext,
    RulePhase,
    RuleResult,
    RULE_PIPELINE_PHASES,
)
from .pipeline import (
    RulePipeline,
    create_rule_pipeline,
    create_default_rule_pipeline,
    validate_rule_phase,
    run_validation,
    apply_rule_phase,
    apply_finalize_phase,
    with_rule_error_handling,
    with_rule_error_handling_async,
)
from .dependencies import dependency_report, requires_dependency, validate_dependencies
from .cache import PipelineCache, CacheStats, DEFAULT_PIPELINE_KEY

__all__ = [
    "BaseRule",
    "FinalizeRule",
    "Rule",
    "RuleContext",
    "RulePhase",
    "RuleResult",
    "RULE_PIPELINE_PHASES",
    "RulePipeline",
    "create_rule_pipeline",
    "create_default_rule_pipeline",
    "validate_rule_phase",
    "run_validation",
    "apply_rule_phase",
    "apply_finalize_phase",
    "with_rule_error_handling",
    "with_rule_error_handling_async",
    "dependency_report",
    "requires_dependency",
    "validate_dependencies",
    "PipelineCache",
    "CacheStats",
    "DEFAULT_PIPELINE_KEY",
]
