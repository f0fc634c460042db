"""
Brute-force decision-tree analysis.

Given every configuration consistent with the board (one row per solution, one
column per location), search the tree of moves and revealed values for the
play that survives the most solutions to the end of the game.
"""

import logging
import threading
from operator import itemgetter
from typing import Dict, List, Optional, Sequence, Tuple

from .actions import SolverAction
from .board import SolverInfo, SolverTile
from .errors import ContractViolationError
from .game import ActionType
from .settings import SolverSettings

logger = logging.getLogger(__name__)

BOMB = -10

# a child needing more work than this to evaluate is worth caching
CACHE_WORK_THRESHOLD = 30

_UNREVEALED = 15
_VALUE_OFFSET = 50


class Node:
    """A game position: the solutions compatible with the values revealed so far."""

    def __init__(self, position: bytes) -> None:
        self.position: bytes = position
        self.winning_lines: int = 0
        self.work: int = 0
        self.from_cache: bool = False
        self.start: int = 0
        self.end: int = 0
        self.living_locations: Optional[List["LivingLocation"]] = None
        self.best_living: Optional["LivingLocation"] = None

    @property
    def solution_size(self) -> int:
        return self.end - self.start

    def probability(self) -> float:
        """Chance of winning from this position with best play."""
        return self.winning_lines / self.solution_size


class LivingLocation:
    """A location whose revealed value still differs between solutions."""

    def __init__(self, index: int) -> None:
        self.index: int = index
        self.pruned: bool = False
        self.mine_count: int = 0
        self.max_solutions: int = 0
        self.zero_solutions: int = 0
        self.min_value: int = -1
        self.max_value: int = -1
        self.count: int = 0
        self.children: Optional[List[Optional[Node]]] = None

    def sort_key(self) -> Tuple[int, int, int, int]:
        # safest first, then most likely zero, most distinct values, smallest worst case
        return (self.mine_count, -self.zero_solutions, -self.count, self.max_solutions)


class BruteForceAnalysis:
    """
    Decision-tree search over an explicit table of solutions.

    Rows are added (thread-safely) by the crunchers, then ``process`` explores
    the tree within the node budget. ``get_next_move`` replays the best line
    against the values the board has revealed since.
    """

    def __init__(
        self,
        info: SolverInfo,
        locations: List[SolverTile],
        max_solutions: int,
        settings: Optional[SolverSettings] = None,
    ) -> None:
        """
        Create an empty analysis.

        Args:
            info: Board knowledge model.
            locations: The tiles each solution row describes, in column order.
            max_solutions: Table capacity; further rows set ``too_many``.
            settings: Solver settings; defaults when None.
        """
        self.info: SolverInfo = info
        self.locations: List[SolverTile] = locations
        self.max_solutions: int = max_solutions
        self.settings: SolverSettings = settings or SolverSettings()

        self._solutions: List[Tuple[int, ...]] = []
        self._lock = threading.Lock()
        self._cache: Dict[bytes, Node] = {}
        self._current: Optional[Node] = None

        self.process_count: int = 0
        self.cache_hits: int = 0
        self.cache_size: int = 0
        self.all_dead: bool = False
        self.too_many: bool = False
        self.completed: bool = False
        self.depth_exceeded: bool = False
        self.expected_move: Optional[SolverTile] = None

    # -------------------------------------------------------------------------
    # Solution table
    # -------------------------------------------------------------------------

    def add_solution(self, solution: Sequence[int]) -> None:
        """
        Append one solution row.

        Raises:
            ContractViolationError: If the row does not match the locations.
        """
        if len(solution) != len(self.locations):
            raise ContractViolationError(
                f"Solution has {len(solution)} values for {len(self.locations)} locations"
            )

        with self._lock:
            if len(self._solutions) >= self.max_solutions:
                self.too_many = True
                return
            self._solutions.append(tuple(solution))

    @property
    def solution_count(self) -> int:
        return len(self._solutions)

    @property
    def node_count(self) -> int:
        return self.process_count

    @property
    def is_complete(self) -> bool:
        return self.completed

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def process(self) -> None:
        """Search for the move with the most winning lines."""
        logger.debug(
            "Decision-tree analysis of %d solutions over %d locations",
            len(self._solutions),
            len(self.locations),
        )

        top = self._build_top_node()
        if not top.living_locations:
            self.all_dead = True

        best = 0
        for move in top.living_locations or []:
            winning_lines = self._top_winning_lines(top, move)

            if best < winning_lines or (
                top.best_living is not None
                and best == winning_lines
                and top.best_living.mine_count > move.mine_count
            ):
                best = winning_lines
                top.best_living = move

            logger.debug(
                "%s: %d values, safe %d/%d, %s",
                self.locations[move.index].as_text(),
                move.count,
                top.solution_size - move.mine_count,
                top.solution_size,
                "pruned" if move.pruned else f"{winning_lines} winning lines",
            )

        top.winning_lines = best
        self._current = top

        self.completed = (
            self.process_count < self.settings.brute_force_max_nodes
            and not self.depth_exceeded
        )
        self._cache.clear()

        logger.info(
            "Decision tree: %d nodes, %d cached, %d cache hits, %d/%d winning lines%s",
            self.process_count,
            self.cache_size,
            self.cache_hits,
            best,
            top.solution_size,
            "" if self.completed else " (incomplete)",
        )

    def _build_top_node(self) -> Node:
        top = Node(bytes([_UNREVEALED] * len(self.locations)))
        top.start = 0
        top.end = len(self._solutions)

        candidates = []
        for index in range(len(self.locations)):
            location = LivingLocation(index)
            location.min_value = 0
            location.max_value = 8
            candidates.append(location)

        top.living_locations = self._living_locations(top, candidates, -1)
        return top

    def _living_locations(
        self, node: Node, candidates: List[LivingLocation], played: int
    ) -> List[LivingLocation]:
        """Return the candidates (other than played) still living at node."""
        rows = self._solutions[node.start : node.end]
        living: List[LivingLocation] = []

        for candidate in candidates:
            if candidate.index == played:
                continue

            value_count = [0] * 9
            mines = 0
            for row in rows:
                value = row[candidate.index]
                if value == BOMB:
                    mines += 1
                else:
                    value_count[value] += 1

            location = LivingLocation(candidate.index)
            for value in range(candidate.min_value, candidate.max_value + 1):
                if value_count[value] > 0:
                    if location.count == 0:
                        location.min_value = value
                    location.max_value = value
                    location.count += 1
                    location.max_solutions = max(location.max_solutions, value_count[value])

            if location.count > 1:
                location.mine_count = mines
                location.zero_solutions = value_count[0]
                living.append(location)

        living.sort(key=LivingLocation.sort_key)
        return living

    def _build_child_nodes(self, parent: Node, move: LivingLocation) -> None:
        """Split the parent's solutions by the value revealed at move."""
        column = move.index
        start, end = parent.start, parent.end
        self._solutions[start:end] = sorted(
            self._solutions[start:end], key=itemgetter(column)
        )
        solutions = self._solutions

        index = start
        while index < end and solutions[index][column] == BOMB:
            index += 1

        children: List[Optional[Node]] = [None] * 9
        for value in range(move.min_value, move.max_value + 1):
            position = (
                parent.position[:column]
                + bytes([value + _VALUE_OFFSET])
                + parent.position[column + 1 :]
            )

            cached = self._cache.get(position)
            if cached is not None:
                children[value] = cached
                self.cache_hits += 1
                while index < end and solutions[index][column] <= value:
                    index += 1
                continue

            child = Node(position)
            child.start = index
            while index < end and solutions[index][column] == value:
                index += 1
            child.end = index
            if child.solution_size > 0:
                children[value] = child

        move.children = children

    def _top_winning_lines(self, node: Node, move: LivingLocation) -> int:
        if (
            self.settings.prune_brute_force
            and node.solution_size - move.mine_count <= node.winning_lines
        ):
            move.pruned = True
            return 0

        winning_lines = self._winning_lines(node, 1, move, node.winning_lines)
        if winning_lines > node.winning_lines:
            node.winning_lines = winning_lines
        return winning_lines

    def _winning_lines(
        self, node: Node, depth: int, move: LivingLocation, cutoff: int
    ) -> int:
        """Count the solutions won by playing move at node and then playing best."""
        settings = self.settings

        self.process_count += 1
        if self.process_count > settings.brute_force_max_nodes:
            return 0
        if depth > settings.brute_force_max_depth:
            if not self.depth_exceeded:
                logger.warning("Decision tree deeper than %d", settings.brute_force_max_depth)
            self.depth_exceeded = True
            return 0

        result = 0
        not_mines = node.solution_size - move.mine_count

        self._build_child_nodes(node, move)

        for child in move.children or []:
            if child is None:
                continue

            if settings.prune_brute_force and result + not_mines <= cutoff:
                move.pruned = True
                return 0

            if child.from_cache:
                node.work += 1
            else:
                child.living_locations = self._living_locations(
                    child, node.living_locations or [], move.index
                )
                node.work += 1

                if not child.living_locations:
                    # every remaining solution looks the same from here
                    child.winning_lines = 1
                else:
                    for child_move in child.living_locations:
                        if child.solution_size - child_move.mine_count <= child.winning_lines:
                            break

                        winning_lines = self._winning_lines(
                            child, depth + 1, child_move, child.winning_lines
                        )
                        if child.winning_lines < winning_lines or (
                            child.best_living is not None
                            and child.winning_lines == winning_lines
                            and child.best_living.mine_count > child_move.mine_count
                        ):
                            child.winning_lines = winning_lines
                            child.best_living = child_move

                        if child_move.mine_count == 0:
                            break

                    child.living_locations = None

                    if child.work > CACHE_WORK_THRESHOLD:
                        child.work = 0
                        child.from_cache = True
                        self.cache_size += 1
                        self._cache[child.position] = child
                    else:
                        node.work += child.work

            if depth > settings.brute_force_tree_depth:
                child.best_living = None

            result += child.winning_lines
            not_mines -= child.solution_size

        return result

    # -------------------------------------------------------------------------
    # Replay
    # -------------------------------------------------------------------------

    def get_next_move(self) -> Optional[SolverAction]:
        """
        Walk the best line forward through the values revealed so far.

        Returns:
            The next move of the best line, or None when the line cannot be
            followed (a revealed value the tree did not branch on, a tile that
            turned out to be a mine, or no continuation stored).
        """
        node = self._current
        if node is None or node.best_living is None:
            return None

        best = node.best_living
        tile = self.locations[best.index]

        while not tile.is_hidden:
            if tile.is_mine:
                return None

            children = best.children or []
            child = children[tile.value] if tile.value < len(children) else None
            if child is None or child.best_living is None:
                return None

            node = child
            best = child.best_living
            tile = self.locations[best.index]

        self._current = node
        self.expected_move = tile

        safe = 1 - best.mine_count / node.solution_size
        logger.debug(
            "Tree move %s: %d of %d solutions safe, %d winning lines",
            tile.as_text(),
            node.solution_size - best.mine_count,
            node.solution_size,
            node.winning_lines,
        )
        return SolverAction.from_tile(tile, ActionType.CLEAR, safe)

    def describe_tree(self) -> str:
        """Render the retained best line, one position per line."""
        lines: List[str] = []
        if self._current is not None:
            self._describe(self._current, 0, None, lines)
        return "\n".join(lines)

    def _describe(
        self, node: Node, depth: int, value: Optional[int], lines: List[str]
    ) -> None:
        indent = "." * (depth * 3)
        if value is None:
            condition = f"{node.solution_size} solutions remain"
        else:
            condition = f"When '{value}' ==> {node.solution_size} solutions remain"

        if node.best_living is None:
            lines.append(f"{indent}{condition} Solve chance {node.probability():.2%}")
            return

        tile = self.locations[node.best_living.index]
        survive = 1 - node.best_living.mine_count / node.solution_size
        lines.append(
            f"{indent}{condition} play {tile.as_text()} "
            f"Survival chance {survive:.2%}, Solve chance {node.probability():.2%}"
        )
        for child_value, child in enumerate(node.best_living.children or []):
            if child is not None:
                self._describe(child, depth + 1, child_value, lines)
