from __future__ import annotations

LIGHT_LOAD_LIMIT = 3
MODERATE_LOAD_LIMIT = 6


def workload_status(current_assignments: int) -> str:
    if current_assignments < LIGHT_LOAD_LIMIT:
        return "light"
    if current_assignments < MODERATE_LOAD_LIMIT:
        return "moderate"
    return "heavy"


def experience_level(experience_years: int | None) -> str:
    if experience_years is None:
        return "unknown"
    if experience_years < 2:
        return "junior"
    if experience_years < 8:
        return "mid"
    return "senior"
