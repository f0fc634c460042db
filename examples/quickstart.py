"""
Quickstart example for the Minesweeper Exact Solver.

This script demonstrates basic usage of the solver.
"""

import logging

from minesolver import (
    BEGINNER,
    EXPERT,
    INTERMEDIATE,
    GameDescription,
    MinesweeperSolver,
    format_solver_knowledge,
    parse_board,
    play_game,
    run_solver_many_tests,
)


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("Minesweeper Exact Solver - Quickstart Example")
    print("=" * 60)

    # Example 1: Probabilities for a hand-drawn position
    print("\n1. Safe probabilities for a small position (5x3, 3 mines)...")
    print("-" * 60)

    description, result = parse_board(
        """
        1 . . . .
        1 . . . .
        1 1 1 . .
        """,
        mines=3,
    )
    solver = MinesweeperSolver(description)
    solver.add_information(result)
    header = solver.find_actions()

    for action in header.actions:
        print(f"  {action.as_text()}")
    print(format_solver_knowledge(solver))

    # Example 2: Solve a single game
    print("\n2. Solving a single Intermediate game (16x16, 40 mines)...")
    print("-" * 60)

    game, solver, payload = play_game(INTERMEDIATE, seed=7)
    print(f"Result: {payload['status'].upper()}")
    print(f"Moves: {payload['moves']}")
    print(f"Trivial moves: {payload['trivial']}")
    print(f"Local clears: {payload['local_clear']}")
    print(f"Probability engine moves: {payload['probability']}")
    print(f"Brute force moves: {payload['brute_force']}")
    print(f"Guesses: {payload['guess']}")

    print("\nFinal board state:")
    print(game.format_board(reveal_all=True))

    # Example 3: Run multiple games for statistics
    print("\n3. Running 50 Beginner games for win rate statistics...")
    print("-" * 60)

    results = run_solver_many_tests(BEGINNER, runs=50, seed=1)
    print(f"Win rate: {results['win_rate']*100:.1f}% (+/- {results['win_rate_stderr']*100:.1f})")
    print(f"Average moves per game: {results['avg_moves']:.1f}")
    print(f"Average guesses per game: {results['avg_guess']:.1f}")
    print(f"Guess success rate: {results['guess_success_rate']*100:.1f}%")

    # Example 4: Compare difficulty levels
    print("\n4. Win rates by difficulty level (10 games each)...")
    print("-" * 60)

    difficulties = [
        ("Beginner", BEGINNER),
        ("Intermediate", INTERMEDIATE),
        ("Expert", EXPERT),
        ("Expert (safe opening)", GameDescription(30, 16, 99, "safe_neighborhood_rule")),
    ]

    for name, level in difficulties:
        results = run_solver_many_tests(level, runs=10, seed=100)
        print(f"{name:22s} ({level.as_text()}): {results['win_rate']*100:5.1f}% win rate")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
