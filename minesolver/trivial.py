"""Fast local deductions that need no combinatorics."""

import logging
from typing import List, Set

from .actions import SolverAction
from .board import SolverInfo, SolverTile
from .game import ActionType

logger = logging.getLogger(__name__)


def find_trivial_actions(info: SolverInfo) -> List[SolverAction]:
    """
    Scan the living witnesses for moves that follow from a single clue.

    Rules applied to each witness:
        - clue == adjacent mines: every other hidden neighbour is safe.
        - clue == adjacent mines + hidden neighbours: every hidden neighbour is a mine.
        - two mines to place among three hidden tiles, next to a revealed tile
          that needs one mine among all but one of them: that one is a mine.
        - subtraction: a revealed neighbour needing the same number of mines,
          whose hidden tiles all touch this witness, makes this witness's other
          hidden tiles safe.

    Known mines that are not flagged are reported as flag actions. Every
    recommendation is recorded on ``info`` so repeating the scan without new
    information returns nothing.

    Args:
        info: The board knowledge model. Proven mines are recorded on it.

    Returns:
        The new actions, clears at probability 1 and flags at probability 0.
    """
    actions: List[SolverAction] = []
    processed: Set[SolverTile] = set()

    def clear(tile: SolverTile) -> None:
        if tile in processed or info.is_pending_clear(tile):
            return
        processed.add(tile)
        info.clear_found(tile)
        actions.append(SolverAction.from_tile(tile, ActionType.CLEAR, 1.0))

    def flag(tile: SolverTile) -> bool:
        processed.add(tile)
        if info.mine_found(tile) or info.is_flag_requested(tile):
            return False
        info.flag_requested(tile)
        actions.append(SolverAction.from_tile(tile, ActionType.FLAG, 0.0))
        return True

    for mine in info.known_mines:
        if not mine.is_flagged and not info.is_flag_requested(mine):
            flag(mine)

    for witness in info.witnesses:
        adj = info.adjacent_info(witness)
        needed = witness.value - adj.mines

        if needed == 0:
            for tile in info.adjacent_tiles(witness):
                if tile.is_hidden:
                    clear(tile)

        elif needed == adj.hidden:
            for tile in info.adjacent_tiles(witness):
                if tile.is_hidden and tile not in processed:
                    flag(tile)

        elif needed == 2 and adj.hidden == 3:
            for other in info.adjacent_tiles(witness):
                if other.is_hidden or other.is_mine or other.is_exhausted:
                    continue
                other_adj = info.adjacent_info(other)
                if other.value - other_adj.mines != 1:
                    continue

                outside = [
                    tile
                    for tile in info.adjacent_tiles(witness)
                    if tile.is_hidden and not tile.is_adjacent(other)
                ]
                # one mine at most per witness, the new mine changes the counts
                if len(outside) == 1 and outside[0] not in processed:
                    if flag(outside[0]):
                        break

        # subtraction
        adj = info.adjacent_info(witness)
        needed = witness.value - adj.mines
        for other in info.adjacent_tiles(witness):
            if other.is_hidden or other.is_mine or other.is_exhausted:
                continue
            other_adj = info.adjacent_info(other)
            if other.value - other_adj.mines != needed:
                continue

            contained = all(
                tile.is_adjacent(witness)
                for tile in info.adjacent_tiles(other)
                if tile.is_hidden
            )
            if not contained:
                continue

            for tile in info.adjacent_tiles(witness):
                if tile.is_hidden and not tile.is_adjacent(other):
                    clear(tile)

    if actions:
        logger.debug("Found %d trivial actions", len(actions))

    return actions
