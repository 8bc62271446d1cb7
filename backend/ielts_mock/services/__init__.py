"""
Services package for business logic.
"""

from .scoring_service import (
    autosave_answers,
    build_student_results,
    evaluate_session,
    get_band_score_ranges,
    get_questions_for_module,
    get_sibling_module_sessions,
    persist_session_result,
    refresh_overall_band,
    replace_band_score_ranges,
    start_session,
    submit_session,
)

__all__ = [
    "autosave_answers",
    "build_student_results",
    "evaluate_session",
    "get_band_score_ranges",
    "get_questions_for_module",
    "get_sibling_module_sessions",
    "persist_session_result",
    "refresh_overall_band",
    "replace_band_score_ranges",
    "start_session",
    "submit_session",
]
