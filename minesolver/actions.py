"""Actions recommended by the solver."""

from typing import List, NamedTuple

from .board import SolverTile
from .game import ActionType


class SolverAction(NamedTuple):
    """A recommended move with its probability of being safe."""

    x: int
    y: int
    action: ActionType
    safe_probability: float
    is_dead: bool = False

    @classmethod
    def from_tile(
        cls, tile: SolverTile, action: ActionType, safe_probability: float
    ) -> "SolverAction":
        """Build an action for a tile, capturing whether the tile is dead."""
        return cls(tile.x, tile.y, action, float(safe_probability), tile.is_dead)

    def as_text(self) -> str:
        return (
            f"{self.action.name} ({self.x},{self.y}) "
            f"safe={self.safe_probability:.4f}{' dead' if self.is_dead else ''}"
        )


class SolverActionHeader(NamedTuple):
    """
    The answer to one solver cycle.

    Attributes:
        actions: Moves to play, sorted ascending by safe probability.
        dead_actions: Advisory DEAD entries for every known dead tile; these
            are for display only and must not be played.
        infeasible: True when no configuration is consistent with the board.
    """

    actions: List[SolverAction]
    dead_actions: List[SolverAction]
    infeasible: bool = False

    @classmethod
    def empty(cls) -> "SolverActionHeader":
        return cls([], [])
