import math
from typing import List

from .models import CharFeedback, PerformanceTier


def round_half_up(value: float) -> int:
    """Round like the browser's ``Math.round`` (0.5 goes up, not to even)."""
    return int(math.floor(value + 0.5))


def words_per_minute(correct_count: int, elapsed_seconds: int) -> int:
    """Correct words extrapolated to a per-minute rate; 0 before any time has elapsed."""
    if elapsed_seconds <= 0:
        return 0
    return round_half_up(correct_count / (elapsed_seconds / 60))


def accuracy(correct_count: int, incorrect_count: int) -> int:
    """Percentage of committed words judged correct; 100 when nothing was committed."""
    total = correct_count + incorrect_count
    if total == 0:
        return 100
    return round_half_up(100 * correct_count / total)


# (min wpm, min accuracy, label, message), checked top to bottom
TIERS = [
    (80, 95, "legendary", "LEGENDARY! You're a typing master!"),
    (60, 90, "excellent", "Excellent work! Keep it up!"),
    (40, 85, "great", "Great job! You're improving!"),
    (20, 0, "good", "Good start! Practice makes perfect!"),
]


def performance_tier(wpm: int, accuracy: int) -> PerformanceTier:
    for min_wpm, min_accuracy, label, message in TIERS:
        if wpm >= min_wpm and accuracy >= min_accuracy:
            return PerformanceTier(label=label, message=message)
    return PerformanceTier(label="practice", message="Keep practicing! You'll get better!")


def char_feedback(target: str, typed: str) -> List[CharFeedback]:
    """
    Compares the in-progress input with the target word character by character.
    Characters typed past the end of the target are reported as ``extra``.
    """
    feedback = []
    for i, expected in enumerate(target):
        if i >= len(typed):
            feedback.append(CharFeedback(char=expected, state="pending"))
        elif typed[i] == expected:
            feedback.append(CharFeedback(char=typed[i], state="correct"))
        else:
            feedback.append(CharFeedback(char=typed[i], state="incorrect"))
    for extra in typed[len(target):]:
        feedback.append(CharFeedback(char=extra, state="extra"))
    return feedback
