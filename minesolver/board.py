"""Board knowledge model: what the solver knows about every tile."""

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, NamedTuple, Optional

from .errors import ContractViolationError
from .game import GameDescription, GameResult, GameStatus, ResultType

if TYPE_CHECKING:
    from .probability import ProbabilityEngine
    from .tree import BruteForceAnalysis

logger = logging.getLogger(__name__)


class AdjacentInfo(NamedTuple):
    """Counts of known mines and hidden tiles around a tile."""

    mines: int
    hidden: int


class SolverTile:
    """
    The solver's view of one board cell.

    Tiles are read-only to everyone except ``SolverInfo``, which owns them and
    updates their private state while ingesting game results.
    """

    def __init__(self, x: int, y: int) -> None:
        self.x: int = x
        self.y: int = y
        self._is_mine: bool = False
        self._is_flagged: bool = False
        self._is_hidden: bool = True
        self._value: int = 0
        self._is_dead: bool = False
        self._is_exhausted: bool = False
        self._adjacent: Optional[List["SolverTile"]] = None

    @property
    def is_mine(self) -> bool:
        return self._is_mine

    @property
    def is_flagged(self) -> bool:
        return self._is_flagged

    @property
    def is_hidden(self) -> bool:
        """True while the tile is neither revealed nor known to be a mine."""
        return self._is_hidden

    @property
    def value(self) -> int:
        return self._value

    @property
    def is_dead(self) -> bool:
        """True if clearing this tile is proven to give no new information."""
        return self._is_dead

    @property
    def is_exhausted(self) -> bool:
        """True once a revealed tile has no hidden neighbours left."""
        return self._is_exhausted

    def is_adjacent(self, other: "SolverTile") -> bool:
        """Return True if other touches this tile (a tile is not adjacent to itself)."""
        dx = abs(self.x - other.x)
        dy = abs(self.y - other.y)
        return dx <= 1 and dy <= 1 and (dx, dy) != (0, 0)

    def as_text(self) -> str:
        return f"({self.x},{self.y})"

    def __repr__(self) -> str:
        return f"SolverTile{self.as_text()}"


class SolverInfo:
    """
    Everything the solver has learnt about one game.

    Ingests move-result batches, tracks living witnesses (revealed tiles that
    still have hidden neighbours), known mines, dead tiles and recommendations
    that have not been played yet, and keeps the probability engine and
    decision tree produced by the latest solver cycle.
    """

    def __init__(self, description: GameDescription) -> None:
        """
        Create an empty knowledge model for a game.

        Args:
            description: Board dimensions and total mine count.
        """
        self.description: GameDescription = description
        self.width: int = description.width
        self.height: int = description.height

        self._tiles: List[List[SolverTile]] = [
            [SolverTile(x, y) for x in range(self.width)] for y in range(self.height)
        ]
        self._tiles_left: int = self.width * self.height
        self.game_status: GameStatus = GameStatus.NOT_STARTED

        # dicts are used as insertion-ordered sets so results are reproducible
        self._witnesses: Dict[SolverTile, None] = {}
        self._known_mines: Dict[SolverTile, None] = {}
        self._dead_tiles: Dict[SolverTile, None] = {}
        self._pending_clears: Dict[SolverTile, None] = {}
        self._flag_requests: Dict[SolverTile, None] = {}

        self.new_clears: List[SolverTile] = []

        self.probability_engine: Optional["ProbabilityEngine"] = None
        self.brute_force_analysis: Optional["BruteForceAnalysis"] = None

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------

    def add_information(self, result: GameResult) -> None:
        """
        Ingest a move-result batch from the game.

        Args:
            result: Status plus per-tile outcomes. MINE and FLAGGED_WRONG
                outcomes (end of game reporting) are ignored.
        """
        self.game_status = result.status
        self.probability_engine = None
        self.new_clears = []

        for action_result in result.action_results:
            tile = self._tiles[action_result.y][action_result.x]
            kind = action_result.result_type

            if kind is ResultType.CLEARED:
                if not tile._is_hidden:
                    continue
                self._tiles_left -= 1
                tile._is_hidden = False
                tile._value = action_result.value
                self.new_clears.append(tile)
                self._dead_tiles.pop(tile, None)
                self._pending_clears.pop(tile, None)

            elif kind is ResultType.FLAGGED:
                tile._is_flagged = True
                self._flag_requests.pop(tile, None)

            elif kind is ResultType.HIDDEN:
                tile._is_flagged = False
                self._flag_requests.pop(tile, None)

            elif kind is ResultType.EXPLODED:
                tile._is_flagged = False
                self.mine_found(tile)
                # the tree cannot be walked once a mine has been trodden on
                self.brute_force_analysis = None

        for witness in self._witnesses:
            if self.adjacent_info(witness).hidden == 0:
                witness._is_exhausted = True
        self._witnesses = {w: None for w in self._witnesses if not w._is_exhausted}

        for tile in self.new_clears:
            if self.adjacent_info(tile).hidden != 0:
                self._witnesses[tile] = None

        logger.debug(
            "Ingested %d results: %d new clears, %d living witnesses, %d tiles left",
            len(result.action_results),
            len(self.new_clears),
            len(self._witnesses),
            self._tiles_left,
        )

    # -------------------------------------------------------------------------
    # Mutators used by the engine
    # -------------------------------------------------------------------------

    def mine_found(self, tile: SolverTile) -> bool:
        """
        Record a proven mine.

        Args:
            tile: The tile proven to hold a mine.

        Returns:
            Whether the tile is currently flagged.
        """
        if tile._is_mine:
            return tile._is_flagged

        self._tiles_left -= 1
        tile._is_mine = True
        tile._is_hidden = False
        self._known_mines[tile] = None
        self._dead_tiles.pop(tile, None)

        return tile._is_flagged

    def set_tile_to_dead(self, tile: SolverTile) -> None:
        """
        Mark a hidden tile as dead.

        Raises:
            ContractViolationError: If the tile is a known mine.
        """
        if tile._is_mine:
            raise ContractViolationError(
                f"Trying to set a mine tile to dead {tile.as_text()}"
            )

        tile._is_dead = True
        self._dead_tiles[tile] = None

    def clear_found(self, tile: SolverTile) -> None:
        """Remember a tile recommended for clearing that has not been played yet."""
        self._pending_clears[tile] = None

    def flag_requested(self, tile: SolverTile) -> None:
        """Remember a known mine for which a flag has been recommended."""
        self._flag_requests[tile] = None

    def is_flag_requested(self, tile: SolverTile) -> bool:
        return tile in self._flag_requests

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def tile(self, x: int, y: int) -> SolverTile:
        return self._tiles[y][x]

    def tiles(self) -> Iterable[SolverTile]:
        """Iterate over every tile, row by row."""
        for row in self._tiles:
            yield from row

    def hidden_tiles(self) -> List[SolverTile]:
        """Return every tile that is neither revealed nor a known mine."""
        return [tile for tile in self.tiles() if tile._is_hidden]

    def adjacent_tiles(self, tile: SolverTile) -> List[SolverTile]:
        """Return the neighbours of a tile, computed once and memoised on it."""
        if tile._adjacent is not None:
            return tile._adjacent

        adjacent: List[SolverTile] = []
        for y in range(max(0, tile.y - 1), min(self.height - 1, tile.y + 1) + 1):
            for x in range(max(0, tile.x - 1), min(self.width - 1, tile.x + 1) + 1):
                if x != tile.x or y != tile.y:
                    adjacent.append(self._tiles[y][x])

        tile._adjacent = adjacent
        return adjacent

    def adjacent_info(self, tile: SolverTile) -> AdjacentInfo:
        mines = 0
        hidden = 0
        for adjacent in self.adjacent_tiles(tile):
            if adjacent._is_mine:
                mines += 1
            elif adjacent._is_hidden:
                hidden += 1
        return AdjacentInfo(mines, hidden)

    @property
    def tiles_left(self) -> int:
        """Hidden tiles that are not known mines."""
        return self._tiles_left

    @property
    def mines_left(self) -> int:
        """Mines not yet located."""
        return self.description.mines - len(self._known_mines)

    @property
    def witnesses(self) -> List[SolverTile]:
        return list(self._witnesses)

    @property
    def known_mines(self) -> List[SolverTile]:
        return list(self._known_mines)

    @property
    def dead_tiles(self) -> List[SolverTile]:
        return list(self._dead_tiles)

    @property
    def pending_clears(self) -> List[SolverTile]:
        """Recommended clears that are still hidden."""
        return [tile for tile in self._pending_clears if tile._is_hidden]

    def is_pending_clear(self, tile: SolverTile) -> bool:
        return tile in self._pending_clears

    def get_probability(self, x: int, y: int) -> Optional[float]:
        """
        Return the safe probability of a tile.

        Args:
            x: Column.
            y: Row.

        Returns:
            0.0 for a known unflagged mine, 1.0 for a recommended clear, the
            latest probability engine's answer for other hidden tiles, or None
            when nothing is known (out of range, revealed, or not analysed).
        """
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return None

        tile = self._tiles[y][x]
        if tile._is_mine and not tile._is_flagged:
            return 0.0
        if not tile._is_hidden:
            return None
        if tile in self._pending_clears:
            return 1.0
        if self.probability_engine is not None:
            return self.probability_engine.probability(tile)
        return None
