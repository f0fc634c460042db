"""
Brute-force enumeration of board configurations.

A ``WitnessWebIterator`` walks mine placements as an odometer of cogs: one cog
per independent witness (choosing its missing mines among its hidden tiles)
plus a trailing cog for the remaining tiles. A ``Cruncher`` checks each
placement against the witnesses and hands the consistent ones, as rows of
revealed values, to a ``BruteForceAnalysis``.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from itertools import combinations, islice
from math import comb
from typing import Dict, Iterator, List, Optional, Tuple

from .board import SolverInfo, SolverTile
from .settings import SolverSettings
from .tree import BOMB, BruteForceAnalysis
from .web import BoxWitness, WitnessWeb

logger = logging.getLogger(__name__)


class WitnessWebIterator:
    """
    Enumerates mine placements over a list of tiles.

    ``tiles`` holds the independent witnesses' tiles first, then every other
    covered tile. Each sample is a tuple of indices into ``tiles`` holding a
    mine. The last cog turns fastest.
    """

    def __init__(
        self,
        independent_witnesses: List[BoxWitness],
        covered_tiles: List[SolverTile],
        mines_left: int,
        rotation: int = -1,
    ) -> None:
        """
        Build the cogs.

        Args:
            independent_witnesses: Witnesses sharing no hidden tiles.
            covered_tiles: Every tile the placements are over.
            mines_left: Mines to place among the covered tiles.
            rotation: When not negative, lock the first cog to its
                rotation-th position so the iterator covers one shard.
        """
        self.tiles: List[SolverTile] = []
        self.iterations: int = 0
        self.rotation: int = rotation

        # (offset into tiles, tile count, mines)
        self._cogs: List[Tuple[int, int, int]] = []

        independent_mines = 0
        for witness in independent_witnesses:
            self._cogs.append((len(self.tiles), len(witness.tiles), witness.mines_to_find))
            self.tiles.extend(witness.tiles)
            independent_mines += witness.mines_to_find

        independent_tiles = len(self.tiles)
        seen = set(self.tiles)
        self.tiles.extend(tile for tile in covered_tiles if tile not in seen)

        rest_tiles = len(self.tiles) - independent_tiles
        rest_mines = mines_left - independent_mines
        self.is_infeasible: bool = rest_mines < 0 or rest_mines > rest_tiles
        if not self.is_infeasible:
            self._cogs.append((independent_tiles, rest_tiles, rest_mines))

        if rotation >= 0 and rotation >= self.cog_positions:
            self.is_infeasible = True

    @property
    def cog_positions(self) -> int:
        """Number of positions of the first cog."""
        if not self._cogs:
            return 0
        _, size, mines = self._cogs[0]
        return comb(size, mines)

    def _positions(self, cog: int) -> Iterator[Tuple[int, ...]]:
        offset, size, mines = self._cogs[cog]
        positions = combinations(range(offset, offset + size), mines)
        if cog == 0 and self.rotation >= 0:
            return islice(positions, self.rotation, self.rotation + 1)
        return positions

    def _turn(self, cog: int, placed: Tuple[int, ...]) -> Iterator[Tuple[int, ...]]:
        if cog == len(self._cogs):
            yield placed
            return
        for position in self._positions(cog):
            yield from self._turn(cog + 1, placed + position)

    def __iter__(self) -> Iterator[Tuple[int, ...]]:
        if self.is_infeasible:
            return
        for sample in self._turn(0, ()):
            self.iterations += 1
            yield sample


class Cruncher:
    """Filters an iterator's samples down to solutions and records them."""

    def __init__(
        self,
        info: SolverInfo,
        iterator: WitnessWebIterator,
        witnesses: List[BoxWitness],
        analysis: BruteForceAnalysis,
    ) -> None:
        self.iterator: WitnessWebIterator = iterator
        self.analysis: BruteForceAnalysis = analysis
        self.candidates: int = 0

        tiles = iterator.tiles
        index: Dict[SolverTile, int] = {tile: i for i, tile in enumerate(tiles)}

        self._witness_values: List[int] = [w.tile.value for w in witnesses]
        self._witness_flags: List[int] = [
            info.adjacent_info(w.tile).mines for w in witnesses
        ]
        self._tile_flags: List[int] = [info.adjacent_info(t).mines for t in tiles]

        # for every tile, the witnesses and tiles it touches
        self._witness_adjacent: List[List[int]] = [[] for _ in tiles]
        for w, witness in enumerate(witnesses):
            for tile in witness.tiles:
                i = index.get(tile)
                if i is not None:
                    self._witness_adjacent[i].append(w)

        self._tile_adjacent: List[List[int]] = [
            [index[adj] for adj in info.adjacent_tiles(tile) if adj in index]
            for tile in tiles
        ]

    def crunch(self) -> int:
        """Check every sample; return the number of solutions found."""
        for sample in self.iterator:
            if self._check_sample(sample):
                self.candidates += 1
        return self.candidates

    def _check_sample(self, sample: Tuple[int, ...]) -> bool:
        counts = list(self._witness_flags)
        for i in sample:
            for w in self._witness_adjacent[i]:
                counts[w] += 1
        if counts != self._witness_values:
            return False

        row = list(self._tile_flags)
        for i in sample:
            for j in self._tile_adjacent[i]:
                row[j] += 1
        for i in sample:
            row[i] = BOMB

        self.analysis.add_solution(row)
        return True


def build_iterators(
    web: WitnessWeb, covered_tiles: List[SolverTile], mines_left: int
) -> List[WitnessWebIterator]:
    """
    Create the iterators for a brute force over covered_tiles.

    With independent witnesses the work is sharded: one iterator per position
    of the first witness's cog. Otherwise a single iterator covers everything.
    """
    witnesses = web.independent_witnesses
    first = WitnessWebIterator(witnesses, covered_tiles, mines_left)
    if not witnesses or first.is_infeasible:
        return [first]

    return [
        WitnessWebIterator(witnesses, covered_tiles, mines_left, rotation)
        for rotation in range(first.cog_positions)
    ]


def perform_brute_force(
    info: SolverInfo,
    iterators: List[WitnessWebIterator],
    witnesses: List[BoxWitness],
    settings: Optional[SolverSettings] = None,
) -> BruteForceAnalysis:
    """
    Run the crunchers and collect the solutions.

    Args:
        info: Board knowledge model.
        iterators: Shards sharing the same tile list.
        witnesses: Witnesses every sample must satisfy.
        settings: Solver settings; defaults when None.

    Returns:
        An analysis holding every solution found, not yet processed.
    """
    settings = settings or SolverSettings()
    analysis = BruteForceAnalysis(
        info, iterators[0].tiles, settings.max_bfda_solutions, settings
    )
    crunchers = [Cruncher(info, it, witnesses, analysis) for it in iterators]

    workers = max(1, min(settings.brute_force_workers, len(crunchers)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(cruncher.crunch) for cruncher in crunchers]
        solutions = sum(future.result() for future in futures)

    iterations = sum(it.iterations for it in iterators)
    logger.info(
        "Brute force: %d solutions from %d iterations over %d tiles in %d shards",
        solutions,
        iterations,
        len(iterators[0].tiles),
        len(iterators),
    )
    if analysis.too_many:
        logger.warning("Brute force found more than %d solutions", settings.max_bfda_solutions)

    return analysis
