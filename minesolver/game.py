"""Game-layer types and a Minesweeper simulator that reports move-result batches."""

import logging
import random
from collections import deque
from enum import Enum
from typing import (
    Deque,
    Dict,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Protocol,
    Set,
    Tuple,
)

logger = logging.getLogger(__name__)

MINES_GENERATION_ALGORITHMS = ("safe_first_action_rule", "safe_neighborhood_rule")


class ActionType(Enum):
    """Kinds of move the solver can propose."""

    CLEAR = "clear"
    FLAG = "flag"
    CHORD = "chord"
    DEAD = "dead"


class GameStatus(Enum):
    """Overall state of a game."""

    NOT_STARTED = "not_started"
    IN_PLAY = "in_play"
    WON = "won"
    LOST = "lost"


class ResultType(Enum):
    """Outcome reported for a single tile."""

    CLEARED = "cleared"
    FLAGGED = "flagged"
    HIDDEN = "hidden"
    EXPLODED = "exploded"
    MINE = "mine"
    FLAGGED_WRONG = "flagged_wrong"


class GameAction(NamedTuple):
    """A move submitted to the game."""

    x: int
    y: int
    action: ActionType


class Move(Protocol):
    """Anything the game can play: ``GameAction`` or the solver's ``SolverAction``."""

    @property
    def x(self) -> int: ...

    @property
    def y(self) -> int: ...

    @property
    def action(self) -> ActionType: ...


class ActionResult(NamedTuple):
    """What happened to one tile as a consequence of a move."""

    x: int
    y: int
    result_type: ResultType
    value: int = 0


class GameResult(NamedTuple):
    """A move-result batch: the game status plus every affected tile."""

    status: GameStatus
    action_results: List[ActionResult]


class GameDescription:
    """Board dimensions, mine count and first-click safety rule."""

    def __init__(
        self,
        width: int,
        height: int,
        mines: int,
        mines_generation_algorithm: str = "safe_first_action_rule",
    ) -> None:
        """
        Describe a game.

        Args:
            width: Board width (number of columns), must be > 0.
            height: Board height (number of rows), must be > 0.
            mines: Total number of mines, must be in ``[0, width * height)``.
            mines_generation_algorithm: One of
                {"safe_first_action_rule", "safe_neighborhood_rule"}.

        Raises:
            ValueError: If dimensions, mine count or algorithm are invalid.
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if mines < 0 or mines >= width * height:
            raise ValueError("mines must be non-negative and leave a safe cell.")
        if mines_generation_algorithm not in MINES_GENERATION_ALGORITHMS:
            raise ValueError(
                'mines_generation_algorithm must be "safe_first_action_rule" '
                'or "safe_neighborhood_rule".'
            )

        self.width: int = width
        self.height: int = height
        self.mines: int = mines
        self.mines_generation_algorithm: str = mines_generation_algorithm

    def as_text(self) -> str:
        return (
            f"{self.width}x{self.height}x{self.mines} "
            f"{self.mines_generation_algorithm}"
        )

    def __repr__(self) -> str:
        return f"GameDescription({self.as_text()})"


BEGINNER_SAFE = GameDescription(9, 9, 10, "safe_first_action_rule")
INTERMEDIATE_SAFE = GameDescription(16, 16, 40, "safe_first_action_rule")
EXPERT_SAFE = GameDescription(30, 16, 99, "safe_first_action_rule")

BEGINNER_ZERO = GameDescription(9, 9, 10, "safe_neighborhood_rule")
INTERMEDIATE_ZERO = GameDescription(16, 16, 40, "safe_neighborhood_rule")
EXPERT_ZERO = GameDescription(30, 16, 99, "safe_neighborhood_rule")

BEGINNER = BEGINNER_SAFE
INTERMEDIATE = INTERMEDIATE_SAFE
EXPERT = EXPERT_SAFE


class Minesweeper:
    """Minesweeper game simulator with first-click safety and batch results."""

    def __init__(
        self,
        description: GameDescription,
        seed: Optional[int] = None,
        mines: Optional[Iterable[Tuple[int, int]]] = None,
    ) -> None:
        """
        Initialize a game.

        Args:
            description: Dimensions, mine count and safety rule.
            seed: Seed for mine placement; None draws from the OS.
            mines: Optional fixed mine coordinates. When given, placement on the
                first click is skipped and ``description.mines`` must match.

        Raises:
            ValueError: If the safety rule cannot be satisfied or the fixed
                layout is inconsistent with the description.
        """
        from .utils import get_neighborhoods

        self.description: GameDescription = description
        self.width: int = description.width
        self.height: int = description.height
        self.mines_count: int = description.mines

        if (
            description.mines_generation_algorithm == "safe_neighborhood_rule"
            and mines is None
            and self.mines_count > self.width * self.height - 9
        ):
            raise ValueError(
                "Cannot place enough safe cells to satisfy safe_neighborhood_rule."
            )

        self.seed: Optional[int] = seed
        self._rng = random.Random(seed)

        self.board: List[List[str]] = [
            [" " for _ in range(self.width)] for _ in range(self.height)
        ]
        self.board_blank: bool = True
        self.revealed: List[List[bool]] = [
            [False for _ in range(self.width)] for _ in range(self.height)
        ]
        self.flagged: List[List[bool]] = [
            [False for _ in range(self.width)] for _ in range(self.height)
        ]
        self.exploded: Set[Tuple[int, int]] = set()

        self.unrevealed_count: int = self.width * self.height - self.mines_count
        self.status: GameStatus = GameStatus.NOT_STARTED
        self.deaths: int = 0

        self._neighborhoods: Dict[
            Tuple[int, int], Tuple[Tuple[int, int], ...]
        ] = get_neighborhoods(self.width, self.height)

        if mines is not None:
            self.set_mines(mines)

    @classmethod
    def from_text(cls, layout: str) -> "Minesweeper":
        """
        Build a game with a fixed layout drawn as text.

        Args:
            layout: One line per row; "*" marks a mine, any other symbol is safe.

        Returns:
            A game whose mines are already placed.
        """
        rows = [line.strip() for line in layout.strip().splitlines() if line.strip()]
        rows = [row.replace(" ", "") for row in rows]
        mines = [
            (x, y) for y, row in enumerate(rows) for x, c in enumerate(row) if c == "*"
        ]
        description = GameDescription(len(rows[0]), len(rows), len(mines))
        return cls(description, mines=mines)

    def neighbors(self, x: int, y: int) -> Tuple[Tuple[int, int], ...]:
        """Return precomputed neighbor coordinates for a cell."""
        return self._neighborhoods[(x, y)]

    def is_mine(self, x: int, y: int) -> bool:
        return self.board[y][x] == "M"

    # -------------------------------------------------------------------------
    # Mine placement
    # -------------------------------------------------------------------------

    def set_mines(self, mines: Iterable[Tuple[int, int]]) -> None:
        """
        Place mines at fixed coordinates.

        Raises:
            ValueError: If the board is not blank or the count differs from
                the description.
        """
        if not self.board_blank:
            raise ValueError("The board is not blank.")

        placed = set(mines)
        if len(placed) != self.mines_count:
            raise ValueError(
                f"Expected {self.mines_count} mines, got {len(placed)}."
            )

        for mx, my in placed:
            self.board[my][mx] = "M"
        self.get_adjacent_mine_counts()
        self.board_blank = False

    def place_mines(self, first_x: int, first_y: int) -> None:
        """
        Place mines on the board (one-time), respecting the selected first-move safety rule.

        Args:
            first_x: X-coordinate of the first revealed cell.
            first_y: Y-coordinate of the first revealed cell.

        Raises:
            ValueError: If the board is not blank.
        """
        if not self.board_blank:
            raise ValueError("The board is not blank.")

        safe: Set[Tuple[int, int]] = {(first_x, first_y)}
        if self.description.mines_generation_algorithm == "safe_neighborhood_rule":
            # Safe zone = first click + its neighbors.
            safe |= set(self.neighbors(first_x, first_y))

        eligible: List[Tuple[int, int]] = [
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if (x, y) not in safe
        ]

        for mx, my in self._rng.sample(eligible, self.mines_count):
            self.board[my][mx] = "M"

        self.get_adjacent_mine_counts()
        self.board_blank = False

    def get_adjacent_mine_counts(self) -> None:
        """Populate every non-mine cell with its adjacent mine count."""
        for y in range(self.height):
            for x in range(self.width):
                if self.board[y][x] == "M":
                    continue

                count = sum(
                    1 for nx, ny in self.neighbors(x, y) if self.board[ny][nx] == "M"
                )
                self.board[y][x] = str(count)

    # -------------------------------------------------------------------------
    # Move processing
    # -------------------------------------------------------------------------

    def process_actions(self, actions: Iterable[Move]) -> GameResult:
        """
        Apply a batch of moves and report every affected tile.

        Args:
            actions: ``GameAction`` or ``SolverAction`` moves. Moves after
                the game has ended are ignored; ``ActionType.DEAD`` is advisory
                and never applied.

        Returns:
            The resulting move-result batch. On a loss it also lists unflagged
            mines (``MINE``) and wrong flags (``FLAGGED_WRONG``).
        """
        results: List[ActionResult] = []

        for action in actions:
            if self.status in (GameStatus.WON, GameStatus.LOST):
                break

            x, y, kind = action.x, action.y, action.action

            if x < 0 or x >= self.width or y < 0 or y >= self.height:
                raise ValueError("Cell coordinates are outside the board.")

            if kind is ActionType.CLEAR:
                results.extend(self._clear_tile(x, y))
            elif kind is ActionType.FLAG:
                results.extend(self._flag_tile(x, y))
            elif kind is ActionType.CHORD:
                results.extend(self._chord_tile(x, y))

        if self.status is GameStatus.LOST:
            for cy in range(self.height):
                for cx in range(self.width):
                    mine = self.is_mine(cx, cy)
                    if mine and not self.flagged[cy][cx] and (cx, cy) not in self.exploded:
                        results.append(ActionResult(cx, cy, ResultType.MINE))
                    if not mine and self.flagged[cy][cx]:
                        results.append(ActionResult(cx, cy, ResultType.FLAGGED_WRONG))

        return GameResult(self.status, results)

    def _start(self, x: int, y: int) -> None:
        if self.board_blank:
            self.place_mines(x, y)
        if self.status is GameStatus.NOT_STARTED:
            self.status = GameStatus.IN_PLAY

    def _flag_tile(self, x: int, y: int) -> List[ActionResult]:
        if self.revealed[y][x]:
            return []

        self.flagged[y][x] = not self.flagged[y][x]
        if self.flagged[y][x]:
            return [ActionResult(x, y, ResultType.FLAGGED)]
        if (x, y) in self.exploded:
            return [ActionResult(x, y, ResultType.EXPLODED)]
        return [ActionResult(x, y, ResultType.HIDDEN)]

    def _clear_tile(self, x: int, y: int) -> List[ActionResult]:
        self._start(x, y)

        if self.flagged[y][x]:
            logger.debug("Unable to clear (%d, %d): tile is flagged", x, y)
            return []
        if (x, y) in self.exploded:
            return []

        if self.is_mine(x, y):
            self._explode(x, y)
            return [ActionResult(x, y, ResultType.EXPLODED)]

        if self.revealed[y][x]:
            return []

        return self.flood_fill([(x, y)])

    def _chord_tile(self, x: int, y: int) -> List[ActionResult]:
        self._start(x, y)

        if not self.revealed[y][x]:
            return []

        flags = 0
        hidden = 0
        for nx, ny in self.neighbors(x, y):
            if self.flagged[ny][nx]:
                flags += 1
            elif not self.revealed[ny][nx]:
                hidden += 1

        if hidden == 0 or int(self.board[y][x]) != flags:
            logger.debug("Unable to chord (%d, %d)", x, y)
            return []

        exploded = [
            (nx, ny)
            for nx, ny in self.neighbors(x, y)
            if self.is_mine(nx, ny) and not self.flagged[ny][nx]
        ]
        if exploded:
            for nx, ny in exploded:
                self._explode(nx, ny)
            return [ActionResult(nx, ny, ResultType.EXPLODED) for nx, ny in exploded]

        start = [
            (nx, ny)
            for nx, ny in self.neighbors(x, y)
            if not self.revealed[ny][nx] and not self.flagged[ny][nx]
        ]
        return self.flood_fill(start)

    def _explode(self, x: int, y: int) -> None:
        self.exploded.add((x, y))
        self.deaths += 1
        self.status = GameStatus.LOST

    def flood_fill(self, start: List[Tuple[int, int]]) -> List[ActionResult]:
        """
        Reveal connected regions using Minesweeper flood fill rules.

        Args:
            start: Safe cells to reveal first.

        Returns:
            A CLEARED result for every newly revealed cell; when the last safe
            cell is revealed, FLAGGED results for every unflagged mine.
        """
        frontier: Deque[Tuple[int, int]] = deque(start)
        visited: Set[Tuple[int, int]] = set(start)
        results: List[ActionResult] = []

        while frontier:
            cx, cy = frontier.popleft()
            if self.revealed[cy][cx]:
                continue

            self.revealed[cy][cx] = True
            self.unrevealed_count -= 1
            results.append(
                ActionResult(cx, cy, ResultType.CLEARED, int(self.board[cy][cx]))
            )

            if self.board[cy][cx] == "0":
                for nx, ny in self.neighbors(cx, cy):
                    if (nx, ny) in visited or self.revealed[ny][nx] or self.flagged[ny][nx]:
                        continue
                    visited.add((nx, ny))
                    frontier.append((nx, ny))

        if self.unrevealed_count == 0:
            for my in range(self.height):
                for mx in range(self.width):
                    if self.is_mine(mx, my) and not self.flagged[my][mx]:
                        self.flagged[my][mx] = True
                        results.append(ActionResult(mx, my, ResultType.FLAGGED))
            self.status = GameStatus.WON

        return results

    # -------------------------------------------------------------------------
    # Display methods
    # -------------------------------------------------------------------------

    _ANSI_RESET = "\033[0m"
    _ANSI_COORD = "\033[96m"
    _ANSI_MINE = "\033[91m"

    def _c(self, s: str) -> str:
        """Wrap string in coordinate color."""
        return f"{self._ANSI_COORD}{s}{self._ANSI_RESET}"

    def _m(self, s: str) -> str:
        """Wrap string in mine color (red)."""
        return f"{self._ANSI_MINE}{s}{self._ANSI_RESET}"

    def format_board(self, reveal_all: bool = False, color: bool = True) -> str:
        """
        Render the board as a multi-line string for terminal display.

        Args:
            reveal_all: If True, show mines and all underlying values.
            color: If False, omit ANSI color codes.

        Returns:
            A formatted multi-line string with coordinate labels and the board grid.
        """
        c = self._c if color else str
        m = self._m if color else str

        def cell_str(x: int, y: int) -> str:
            if self.flagged[y][x] and not reveal_all:
                return "F"
            if reveal_all or self.revealed[y][x] or (x, y) in self.exploded:
                v = self.board[y][x]
                if v == "M":
                    return m("M")
                return v
            return "."

        header_cells = " ".join(f"{x:2d}" for x in range(self.width))
        out = [c("   ") + c(header_cells)]
        out.append(c("   " + "-" * (3 * self.width - 1)))

        for y in range(self.height):
            row_cells = " ".join(f" {cell_str(x, y)}" for x in range(self.width))
            out.append(c(f"{y:2d} ") + c("|") + row_cells)

        return "\n".join(out)

    def print_board(self) -> None:
        """Print the current visible board state to stdout."""
        print(self.format_board(reveal_all=False))
