"""Season aggregator: folds one cycle's results into season totals."""

from typing import Optional

from .models import ScoredNomination, SeasonTotals


def _running_mean(previous_mean: float, previous_count: int, value: float) -> float:
    return (previous_mean * previous_count + value) / (previous_count + 1)


def fold_result(
    current: Optional[SeasonTotals],
    result: ScoredNomination,
    movies_watched: int = 0,
) -> SeasonTotals:
    """Return the season totals after adding one cycle result.

    ``current`` is None when the user has no row for the season yet.
    ``average_points`` is always re-derived as total / participated.
    """
    won = 1 if result.final_rank == 1 else 0
    if current is None:
        return SeasonTotals(
            cycles_participated=1,
            cycles_won=won,
            total_points=result.points_earned,
            average_points=result.points_earned,
            average_rank=float(result.final_rank),
            guess_accuracy=result.guess_accuracy,
            movies_watched=movies_watched,
        )

    previous = current.cycles_participated
    participated = previous + 1
    total_points = current.total_points + result.points_earned
    return SeasonTotals(
        cycles_participated=participated,
        cycles_won=current.cycles_won + won,
        total_points=total_points,
        average_points=total_points / participated,
        average_rank=_running_mean(current.average_rank, previous, result.final_rank),
        guess_accuracy=_running_mean(
            current.guess_accuracy, previous, result.guess_accuracy
        ),
        movies_watched=current.movies_watched + movies_watched,
    )
