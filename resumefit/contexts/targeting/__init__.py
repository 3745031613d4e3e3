"""
Targeting Context

Responsibilities:
- Builds the keyword-gap, bullet-rewrite and skill-refinement prompts
- Recovers JSON operations from noisy model replies
- Validates operations and applies them to the live document
- Enforces the post-hoc word-window, keyword and deletion policy

Owns: Model passes, reply recovery, op reconciliation, rewrite policy
Never: Compiles LaTeX or renders projects
"""

from resumefit.contexts.targeting.normalizer import (
    ModelReply,
    parse_model_reply,
    parse_operations,
    recover_json,
    sanitize_backslashes,
)
from resumefit.contexts.targeting.operations import (
    Operation,
    ReplaceBullets,
    ReplaceSkillCsv,
    parse_operation,
    parse_operation_list,
)
from resumefit.contexts.targeting.planner import KeywordGaps, ModelClient
from resumefit.contexts.targeting.policy import enforce_bullet_policy, enforce_skill_quota
from resumefit.contexts.targeting.reconciliation import (
    apply_operation,
    apply_operations,
    clean_skill_csv,
    normalize_bullets,
)

__all__ = [
    # Model passes
    "ModelClient",
    "KeywordGaps",
    # Reply recovery
    "ModelReply",
    "parse_model_reply",
    "parse_operations",
    "recover_json",
    "sanitize_backslashes",
    # Operations
    "Operation",
    "ReplaceBullets",
    "ReplaceSkillCsv",
    "parse_operation",
    "parse_operation_list",
    # Reconciliation and policy
    "apply_operation",
    "apply_operations",
    "normalize_bullets",
    "clean_skill_csv",
    "enforce_bullet_policy",
    "enforce_skill_quota",
]
