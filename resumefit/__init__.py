"""
resumefit - Job-description driven tailoring of LaTeX résumés

Rewrites the bullets and skill lines of a LaTeX résumé template so they match a
job description, then compiles the result to PDF through a remote LaTeX service.

Architecture:
- Templating Context: LaTeX structure parsing, project injection, repairs
- Targeting Context: Model prompts, reply recovery, op reconciliation and policy
- Rendering Context: Remote PDF compilation and compiler log diagnostics
"""

__version__ = "0.1.0"
