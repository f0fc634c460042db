"""
Witness web: boxes, witnesses and the probability-line merge shared by the
probability engine and the solution counter.

Hidden tiles next to the same set of witnesses are grouped into a box. The web
is walked one witness at a time; each step distributes the witness's missing
mines over the boxes it introduces, producing probability lines (one mine count
per box plus a solution multiplicity). Witnesses that share no boxes form
separate edges which are crunched by mine count and then combined.
"""

import logging
from math import gcd
from typing import Dict, List, NamedTuple, Optional

from .binomial import Binomial
from .board import SolverInfo, SolverTile
from .settings import SolverSettings

logger = logging.getLogger(__name__)

# number of distinct mine counts before the significant window is considered
SIGNIFICANT_RANGE_MIN_VALUES = 30


class BoxWitness:
    """A revealed tile, the mines it still needs and the hidden tiles around it."""

    def __init__(self, info: SolverInfo, tile: SolverTile) -> None:
        self.tile: SolverTile = tile
        self.mines_to_find: int = tile.value
        self.tiles: List[SolverTile] = []
        self.boxes: List["Box"] = []
        self.processed: bool = False

        for adjacent in info.adjacent_tiles(tile):
            if adjacent.is_mine:
                self.mines_to_find -= 1
            elif adjacent.is_hidden:
                self.tiles.append(adjacent)

    def overlap(self, other: "BoxWitness") -> bool:
        """Return True if the two witnesses share a hidden tile."""
        if abs(other.tile.x - self.tile.x) > 2 or abs(other.tile.y - self.tile.y) > 2:
            return False
        mine = set(self.tiles)
        return any(tile in mine for tile in other.tiles)

    def equivalent(self, other: "BoxWitness") -> bool:
        """Return True if the two witnesses see exactly the same hidden tiles."""
        if len(self.tiles) != len(other.tiles):
            return False
        if abs(other.tile.x - self.tile.x) > 2 or abs(other.tile.y - self.tile.y) > 2:
            return False
        return set(self.tiles) == set(other.tiles)

    def __repr__(self) -> str:
        return f"BoxWitness{self.tile.as_text()} find={self.mines_to_find}"


class Box:
    """Hidden tiles that share an identical set of witnesses."""

    def __init__(self, witnesses: List[BoxWitness], tile: SolverTile, uid: int) -> None:
        self.uid: int = uid
        self.tiles: List[SolverTile] = [tile]
        self.witnesses: List[BoxWitness] = []
        self.min_mines: int = 0
        self.max_mines: int = 0
        self.safe_probability: float = 0.0
        self.processed: bool = False

        for witness in witnesses:
            if tile.is_adjacent(witness.tile):
                self.witnesses.append(witness)
                witness.boxes.append(self)

    def fits(self, tile: SolverTile, count: int) -> bool:
        """
        Return True if tile has exactly this box's witnesses.

        Args:
            tile: Candidate tile.
            count: How many of the web's witnesses are adjacent to tile.
        """
        if count != len(self.witnesses):
            return False
        return all(witness.tile.is_adjacent(tile) for witness in self.witnesses)

    def add(self, tile: SolverTile) -> None:
        self.tiles.append(tile)

    def calculate(self, mines_left: int) -> None:
        """Set the mine bounds once every tile has been added."""
        size = len(self.tiles)
        self.max_mines = min(size, mines_left)
        self.min_mines = 0

        for witness in self.witnesses:
            self.max_mines = min(self.max_mines, witness.mines_to_find)
            # mines the witness cannot fit anywhere outside this box
            outside = len(witness.tiles) - size
            self.min_mines = max(self.min_mines, witness.mines_to_find - outside)

    @property
    def is_dead(self) -> bool:
        """A box is dead when every one of its tiles is dead."""
        return all(tile.is_dead for tile in self.tiles)

    def __repr__(self) -> str:
        return (
            f"Box#{self.uid}[{','.join(t.as_text() for t in self.tiles)}]"
            f" mines={self.min_mines}..{self.max_mines}"
        )


class ProbabilityLine:
    """
    One mine distribution over the boxes.

    ``mine_box_count[i]`` holds mines placed in box i. After crunching it holds
    the mines in box i summed over every arrangement the line stands for.
    """

    def __init__(
        self,
        box_count: int,
        mine_count: int = 0,
        solution_count: int = 0,
        mine_box_count: Optional[List[int]] = None,
    ) -> None:
        self.mine_count: int = mine_count
        self.solution_count: int = solution_count
        self.mine_box_count: List[int] = (
            list(mine_box_count) if mine_box_count is not None else [0] * box_count
        )

    def __repr__(self) -> str:
        return (
            f"ProbabilityLine(mines={self.mine_count}, "
            f"solutions={self.solution_count}, boxes={self.mine_box_count})"
        )


class EdgeStore(NamedTuple):
    """Crunched lines of one edge and the boxes that belong to it."""

    lines: List[ProbabilityLine]
    mask: List[bool]


class NextWitness:
    """A witness about to be merged, with its boxes split into seen and new."""

    def __init__(self, box_witness: BoxWitness) -> None:
        self.box_witness: BoxWitness = box_witness
        self.old_boxes: List[Box] = [b for b in box_witness.boxes if b.processed]
        self.new_boxes: List[Box] = [b for b in box_witness.boxes if not b.processed]


class DeadCandidate:
    """
    A witnessed tile whose hidden neighbours are all boxed.

    Good boxes lie entirely next to (or on) the candidate, bad boxes do not.
    The candidate is dead when, in every line where it is safe, the bad boxes
    hold no mines and the good boxes always hold the same number: its value
    would then be the same in every solution.
    """

    def __init__(self, candidate: SolverTile, my_box: Box) -> None:
        self.candidate: SolverTile = candidate
        self.my_box: Box = my_box
        self.good_boxes: List[Box] = []
        self.bad_boxes: List[Box] = []
        self.is_alive: bool = False
        self.total: Optional[int] = None

    def check_total(self, total: int) -> bool:
        """Return True if total matches the first total seen."""
        if self.total is None:
            self.total = total
            return True
        return self.total == total


# -----------------------------------------------------------------------------
# Shared walk
# -----------------------------------------------------------------------------


class WitnessWeb:
    """
    Box/witness decomposition of the board plus the edge-by-edge merge.

    Subclasses hook into the end of each edge (``_end_of_edge`` and
    ``_edge_stored``) and read ``held`` once ``walk`` has returned.
    """

    def __init__(
        self,
        info: SolverInfo,
        witnesses: List[SolverTile],
        witnessed: List[SolverTile],
        tiles_left: int,
        mines_left: int,
        binomial: Binomial,
        settings: Optional[SolverSettings] = None,
    ) -> None:
        """
        Build the web.

        Args:
            info: Board knowledge model.
            witnesses: Revealed tiles taking part in the web.
            witnessed: Hidden tiles next to those witnesses.
            tiles_left: Hidden tiles in scope, witnessed or not.
            mines_left: Mines to place among tiles_left.
            binomial: Binomial calculator of the owning solver.
            settings: Solver settings; defaults when None.
        """
        self.info: SolverInfo = info
        self.binomial: Binomial = binomial
        self.settings: SolverSettings = settings or SolverSettings()

        self.witnessed: List[SolverTile] = witnessed
        self.mines_left: int = mines_left
        self.tiles_left: int = tiles_left
        self.tiles_off_edge: int = tiles_left - len(witnessed)
        # too few mines on the edge and the rest cannot fit off the edge
        self.min_total_mines: int = mines_left - self.tiles_off_edge
        self.max_total_mines: int = mines_left

        self.box_witnesses: List[BoxWitness] = []
        self.pruned_witnesses: List[BoxWitness] = []
        for tile in witnesses:
            box_witness = BoxWitness(info, tile)
            if not any(w.equivalent(box_witness) for w in self.box_witnesses):
                self.pruned_witnesses.append(box_witness)
            self.box_witnesses.append(box_witness)

        self.boxes: List[Box] = []
        self.box_lookup: Dict[SolverTile, Box] = {}
        witness_tiles = [w.tile for w in self.box_witnesses]
        for tile in witnessed:
            count = sum(1 for w in witness_tiles if tile.is_adjacent(w))
            for box in self.boxes:
                if box.fits(tile, count):
                    box.add(tile)
                    self.box_lookup[tile] = box
                    break
            else:
                box = Box(self.box_witnesses, tile, len(self.boxes))
                self.boxes.append(box)
                self.box_lookup[tile] = box

        for box in self.boxes:
            box.calculate(mines_left)

        logger.debug(
            "Web has %d witnesses (%d after pruning), %d boxes, %d tiles off edge",
            len(self.box_witnesses),
            len(self.pruned_witnesses),
            len(self.boxes),
            self.tiles_off_edge,
        )

        self.mask: List[bool] = [False] * len(self.boxes)
        self.working: List[ProbabilityLine] = []
        self.held: List[ProbabilityLine] = []
        self.edges: List[EdgeStore] = []
        self.solution_count_multiplier: int = 1

        self.edge_mines_min: int = 0
        self.edge_mines_max: int = 0
        self.edge_mines_min_left: int = 0
        self.edge_mines_max_left: int = 0
        self.mine_count_lower_cutoff: int = self.min_total_mines
        self.mine_count_upper_cutoff: int = mines_left

        self.is_infeasible: bool = False
        self.truncated: bool = False
        self.recursions: int = 0

        self.independent_witnesses: List[BoxWitness] = []
        self.dependent_witnesses: List[BoxWitness] = []
        self.independent_mines: int = 0
        self.independent_tiles: int = 0
        self.independent_iterations: int = 1
        self.remaining_tiles: int = len(witnessed)

    # -------------------------------------------------------------------------
    # Independent witnesses
    # -------------------------------------------------------------------------

    def generate_independent_witnesses(self) -> None:
        """
        Pick a greedy set of pruned witnesses that share no hidden tiles.

        Each independent witness becomes one cog of the brute-force iterator,
        which only has to enumerate ``C(len(tiles), mines_to_find)`` positions
        for it instead of every subset of the board.
        """
        self.independent_witnesses = []
        self.dependent_witnesses = []
        self.independent_mines = 0
        self.independent_tiles = 0
        self.independent_iterations = 1
        self.remaining_tiles = len(self.witnessed)

        for witness in self.pruned_witnesses:
            if any(witness.overlap(iw) for iw in self.independent_witnesses):
                self.dependent_witnesses.append(witness)
                continue

            size = len(witness.tiles)
            self.remaining_tiles -= size
            self.independent_tiles += size
            self.independent_mines += witness.mines_to_find
            self.independent_iterations *= self.binomial.choose(
                size, witness.mines_to_find
            )
            self.independent_witnesses.append(witness)

        logger.debug(
            "%d independent witnesses covering %d tiles and %d mines",
            len(self.independent_witnesses),
            self.independent_tiles,
            self.independent_mines,
        )

    # -------------------------------------------------------------------------
    # Walk
    # -------------------------------------------------------------------------

    def walk(self) -> None:
        """Merge every witness into probability lines, edge by edge."""
        box_count = len(self.boxes)
        self.mask = [False] * box_count
        self.held = [ProbabilityLine(box_count, solution_count=1)]
        self.working = [ProbabilityLine(box_count)]

        next_witness = self._find_first_witness()
        while next_witness is not None:
            for box in next_witness.new_boxes:
                self.mask[box.uid] = True

            self.working = self._merge_probabilities(next_witness)
            next_witness = self._find_next_witness(next_witness)

    def _find_first_witness(self) -> Optional[NextWitness]:
        for box_witness in self.box_witnesses:
            if not box_witness.processed:
                return NextWitness(box_witness)
        return None

    def _find_next_witness(self, previous: NextWitness) -> Optional[NextWitness]:
        previous.box_witness.processed = True
        for box in previous.new_boxes:
            box.processed = True

        best_todo = None
        best_witness: Optional[BoxWitness] = None
        for box in self.boxes:
            if not box.processed:
                continue
            for witness in box.witnesses:
                if witness.processed:
                    continue
                todo = sum(1 for b in witness.boxes if not b.processed)
                if todo == 0:
                    return NextWitness(witness)
                if best_todo is None or todo < best_todo:
                    best_todo = todo
                    best_witness = witness

        if best_witness is not None:
            return NextWitness(best_witness)

        # nothing touches the processed boxes: this edge is complete
        if not self.working:
            self.is_infeasible = True
            logger.warning("Edge has no consistent probability lines")
            return None

        if not self._end_of_edge():
            return None

        self._store_edge()

        next_witness = self._find_first_witness()
        if next_witness is not None:
            logger.debug("Starting a new independent edge")
            return next_witness

        self.edges.sort(key=lambda edge: len(edge.lines))
        self._analyse_all_edges()
        for edge in self.edges:
            self._combine_probabilities(edge.lines)

        return None

    def _end_of_edge(self) -> bool:
        """Inspect the finished edge; return False to stop the walk."""
        return True

    def _edge_stored(self, edge: EdgeStore) -> None:
        """Called with every edge after it has been crunched and stored."""

    def _store_edge(self) -> None:
        crunched = self._crunch_by_mine_count(self.working)
        edge = EdgeStore(crunched, list(self.mask))
        self.edges.append(edge)

        self.working = [ProbabilityLine(len(self.boxes))]
        self._edge_stored(edge)
        self.mask = [False] * len(self.boxes)

    # -------------------------------------------------------------------------
    # Merging a witness
    # -------------------------------------------------------------------------

    def _merge_probabilities(self, next_witness: NextWitness) -> List[ProbabilityLine]:
        result: List[ProbabilityLine] = []
        mines_to_find = next_witness.box_witness.mines_to_find

        for line in self.working:
            placed = sum(line.mine_box_count[b.uid] for b in next_witness.old_boxes)
            missing = mines_to_find - placed

            if missing < 0:
                # too many mines already around this witness
                continue
            if missing == 0:
                result.append(line)
            elif next_witness.new_boxes:
                result.extend(
                    self._distribute_missing_mines(line, next_witness, missing, 0)
                )

        return result

    def _distribute_missing_mines(
        self, line: ProbabilityLine, next_witness: NextWitness, missing: int, index: int
    ) -> List[ProbabilityLine]:
        """Place missing mines in the new boxes from index onwards, by backtracking."""
        self.recursions += 1
        box = next_witness.new_boxes[index]

        if len(next_witness.new_boxes) - index == 1:
            if box.max_mines < missing or box.min_mines > missing:
                return []
            if line.mine_count + missing > self.max_total_mines:
                return []
            line.mine_box_count[box.uid] = missing
            line.mine_count += missing
            return [line]

        result: List[ProbabilityLine] = []
        for mines in range(box.min_mines, min(box.max_mines, missing) + 1):
            extended = ProbabilityLine(
                0, line.mine_count + mines, 0, line.mine_box_count
            )
            extended.mine_box_count[box.uid] = mines
            result.extend(
                self._distribute_missing_mines(
                    extended, next_witness, missing - mines, index + 1
                )
            )
        return result

    # -------------------------------------------------------------------------
    # Crunching and combining edges
    # -------------------------------------------------------------------------

    def _crunch_by_mine_count(self, lines: List[ProbabilityLine]) -> List[ProbabilityLine]:
        """Collapse lines into one per mine count, weighting by tile arrangements."""
        box_count = len(self.boxes)
        in_edge = [i for i, masked in enumerate(self.mask) if masked]

        result: List[ProbabilityLine] = []
        current: Optional[ProbabilityLine] = None
        for line in sorted(lines, key=lambda pl: pl.mine_count):
            if current is None or line.mine_count != current.mine_count:
                current = ProbabilityLine(box_count, line.mine_count)
                result.append(current)

            weight = 1
            for i in in_edge:
                weight *= self.binomial.choose(
                    len(self.boxes[i].tiles), line.mine_box_count[i]
                )

            current.solution_count += weight
            for i in in_edge:
                current.mine_box_count[i] += line.mine_box_count[i] * weight

        return result

    def _analyse_all_edges(self) -> None:
        """Set the mine-count window used to prune combined lines."""
        self.edge_mines_min = sum(edge.lines[0].mine_count for edge in self.edges)
        self.edge_mines_max = sum(edge.lines[-1].mine_count for edge in self.edges)
        self.edge_mines_min_left = self.edge_mines_min
        self.edge_mines_max_left = self.edge_mines_max

        self.mine_count_lower_cutoff = max(self.edge_mines_min, self.min_total_mines)
        self.mine_count_upper_cutoff = min(self.edge_mines_max, self.mines_left)

        logger.debug(
            "Edges hold between %d and %d mines, window %d..%d",
            self.edge_mines_min,
            self.edge_mines_max,
            self.mine_count_lower_cutoff,
            self.mine_count_upper_cutoff,
        )

        if self.settings.significant_range_only:
            self._narrow_to_significant_range()

    def _narrow_to_significant_range(self) -> None:
        """Shrink the window to the central 95% of the solution weight."""
        counts: Dict[int, int] = {0: 1}
        for edge in self.edges:
            combined: Dict[int, int] = {}
            for line in edge.lines:
                for mines, solutions in counts.items():
                    total_mines = line.mine_count + mines
                    if total_mines <= self.max_total_mines:
                        combined[total_mines] = (
                            combined.get(total_mines, 0) + line.solution_count * solutions
                        )
            counts = combined

        weighted = [
            (
                mines,
                self.binomial.choose(self.tiles_off_edge, self.mines_left - mines)
                * solutions,
            )
            for mines, solutions in sorted(counts.items())
            if mines >= self.min_total_mines
        ]
        if len(weighted) <= SIGNIFICANT_RANGE_MIN_VALUES:
            return

        total = sum(weight for _, weight in weighted)
        so_far = 0
        lower = self.mine_count_lower_cutoff
        upper = self.mine_count_upper_cutoff
        for mines, weight in weighted:
            so_far += weight
            # so_far / total < 2.5%
            if so_far * 1000 < total * 25:
                lower = mines
            # so_far / total > 97.5%
            if so_far * 1000 > total * 975:
                upper = mines
                break

        if (lower, upper) != (self.mine_count_lower_cutoff, self.mine_count_upper_cutoff):
            self.truncated = True
            logger.info(
                "Mine-count window narrowed from %d..%d to %d..%d",
                self.mine_count_lower_cutoff,
                self.mine_count_upper_cutoff,
                lower,
                upper,
            )
        self.mine_count_lower_cutoff = max(lower, self.mine_count_lower_cutoff)
        self.mine_count_upper_cutoff = min(upper, self.mine_count_upper_cutoff)

    def _combine_probabilities(self, lines: List[ProbabilityLine]) -> None:
        """Cross-multiply an edge's lines into the held lines."""
        box_count = len(self.boxes)

        hcd = 0
        for line in lines:
            hcd = gcd(hcd, line.solution_count)
        for line in self.held:
            hcd = gcd(hcd, line.solution_count)
        if hcd == 0:
            hcd = 1
        self.solution_count_multiplier *= hcd
        logger.debug("Greatest common divisor is %d", hcd)

        self.edge_mines_min_left -= lines[0].mine_count
        self.edge_mines_max_left -= lines[-1].mine_count

        combined: Dict[int, ProbabilityLine] = {}
        for line in lines:
            line_solutions = line.solution_count // hcd
            for held in self.held:
                mines = line.mine_count + held.mine_count
                if mines + self.edge_mines_max_left < self.mine_count_lower_cutoff:
                    continue
                if mines + self.edge_mines_min_left > self.mine_count_upper_cutoff:
                    continue

                held_solutions = held.solution_count // hcd
                target = combined.get(mines)
                if target is None:
                    target = ProbabilityLine(box_count, mines)
                    combined[mines] = target

                target.solution_count += line.solution_count * held_solutions
                counts = target.mine_box_count
                for k in range(box_count):
                    counts[k] += (
                        line.mine_box_count[k] * held_solutions
                        + held.mine_box_count[k] * line_solutions
                    )

        self.held = [combined[mines] for mines in sorted(combined)]

        if not self.held:
            self.is_infeasible = True
            logger.warning("Impossible position encountered while combining edges")
