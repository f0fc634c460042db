"""Utility functions for the Minesweeper solver."""

from typing import Dict, List, Tuple

from .game import (
    ActionResult,
    GameDescription,
    GameResult,
    GameStatus,
    ResultType,
)


def get_neighborhoods(
    width: int, height: int
) -> Dict[Tuple[int, int], Tuple[Tuple[int, int], ...]]:
    """
    Compute 8-connected neighbor coordinates for every cell in a grid.

    Args:
        width: Grid width (number of columns). Must be positive.
        height: Grid height (number of rows). Must be positive.

    Returns:
        Mapping from each cell (x, y) to a tuple of valid neighboring
        coordinates (nx, ny), ordered row by row.

    Raises:
        ValueError: If width or height is non-positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive.")

    neighborhoods: Dict[Tuple[int, int], Tuple[Tuple[int, int], ...]] = {}
    for y in range(height):
        for x in range(width):
            nbrs: List[Tuple[int, int]] = []
            for dy in (-1, 0, 1):
                for dx in (-1, 0, 1):
                    if dx == 0 and dy == 0:
                        continue
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < width and 0 <= ny < height:
                        nbrs.append((nx, ny))
            neighborhoods[(x, y)] = tuple(nbrs)

    return neighborhoods


def parse_board(
    text: str,
    mines: int,
    mines_generation_algorithm: str = "safe_first_action_rule",
) -> Tuple[GameDescription, GameResult]:
    """
    Read a board drawn as text into a game description and a result batch.

    Each non-blank line is one row. Cells may be separated by spaces or
    written back to back. Symbols:
        - "0".."8": a cleared tile showing that value
        - "." or "H": a hidden tile
        - "F": a hidden tile carrying a flag

    Args:
        text: The drawing.
        mines: Total mines in the game.
        mines_generation_algorithm: Safety rule recorded on the description.

    Returns:
        (description, result) where result reports every cleared and flagged
        tile with status IN_PLAY, ready for ``SolverInfo.add_information``.

    Raises:
        ValueError: If rows have different widths or a symbol is unknown.
    """
    rows: List[List[str]] = []
    for line in text.strip().splitlines():
        line = line.strip()
        if not line:
            continue
        cells = line.split() if " " in line else list(line)
        rows.append(cells)

    if not rows:
        raise ValueError("Board text is empty.")

    width = len(rows[0])
    if any(len(row) != width for row in rows):
        raise ValueError("All board rows must have the same width.")

    results: List[ActionResult] = []
    for y, row in enumerate(rows):
        for x, symbol in enumerate(row):
            if symbol.isdigit():
                value = int(symbol)
                if value > 8:
                    raise ValueError(f"Invalid tile value {value} at ({x}, {y}).")
                results.append(ActionResult(x, y, ResultType.CLEARED, value))
            elif symbol == "F":
                results.append(ActionResult(x, y, ResultType.FLAGGED))
            elif symbol not in (".", "H"):
                raise ValueError(f"Unknown board symbol {symbol!r} at ({x}, {y}).")

    description = GameDescription(width, len(rows), mines, mines_generation_algorithm)
    return description, GameResult(GameStatus.IN_PLAY, results)


def ratio(numerator: int, denominator: int) -> float:
    """
    Divide two (possibly huge) integers into a float.

    Python's int true division rounds correctly even when both operands are
    far beyond float range, so no intermediate conversion is done here.

    Raises:
        ZeroDivisionError: If denominator is zero.
    """
    return numerator / denominator
