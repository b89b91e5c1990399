from __future__ import annotations

from decimal import Decimal

from domain.models import SavingsGoal
from domain.schemas import GoalProgress


def progress_percent(goal: SavingsGoal) -> float:
    # A goal without a positive target has no meaningful progress.
    if goal.target_amount <= 0:
        return 0.0
    return float(Decimal("100") * goal.current_amount / goal.target_amount)


def remaining(goal: SavingsGoal) -> Decimal:
    """Amount still to save; negative once the goal is overfunded."""
    return goal.target_amount - goal.current_amount


def goal_progress(goal: SavingsGoal) -> GoalProgress:
    return GoalProgress(
        id=goal.id,
        name=goal.name,
        target_amount=float(goal.target_amount),
        current_amount=float(goal.current_amount),
        target_date=goal.target_date,
        progress_percent=round(progress_percent(goal), 2),
        remaining=round(float(remaining(goal)), 2),
    )
