from typing import Iterable, Tuple

# (lower bound, level, APS points), highest band first
ACHIEVEMENT_BANDS: Tuple[Tuple[int, str, int], ...] = (
    (80, "Distinction", 7),
    (70, "Merit", 6),
    (60, "Achieved", 5),
    (50, "Satisfactory", 4),
    (40, "Elementary", 3),
    (30, "Not Achieved", 2),
    (0, "Fail", 1),
)


def _band(mark: int) -> Tuple[int, str, int]:
    for band in ACHIEVEMENT_BANDS:
        if mark >= band[0]:
            return band
    return ACHIEVEMENT_BANDS[-1]


def level_of(mark: int) -> str:
    """Achievement level for a mark out of 100."""
    return _band(mark)[1]


def aps_points_of(mark: int) -> int:
    """APS point value for a mark out of 100."""
    return _band(mark)[2]


def calculate_aps(marks: Iterable[int]) -> Tuple[int, int, float]:
    """
    Sum APS points over a set of marks

    Args:
        marks: Marks out of 100

    Returns:
        Tuple[int, int, float]: Total points, number of marks and average
        points per mark rounded to 2 decimals (0.0 when empty)
    """
    total_points = 0
    subject_count = 0
    for mark in marks:
        total_points += aps_points_of(mark)
        subject_count += 1

    average_points = round(total_points / subject_count, 2) if subject_count else 0.0
    return total_points, subject_count, average_points
