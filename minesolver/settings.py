"""Solver configuration."""

from dataclasses import dataclass


@dataclass
class SolverSettings:
    """
    Budgets and switches for one solver instance.

    Attributes:
        brute_force_enabled: Allow the brute-force decision-tree search at all.
        max_bfda_solutions: Solution-count ceiling for running a full brute force.
        brute_force_max_iterations: Ceiling on the iterator's expected sample count.
        brute_force_max_nodes: Node budget for the decision-tree analysis.
        brute_force_tree_depth: Depth below which best continuations are dropped
            after evaluation to bound memory.
        brute_force_max_depth: Hard recursion bound for the decision-tree search.
        prune_brute_force: Stop evaluating a move once it cannot beat the best.
        brute_force_workers: Thread pool size for cruncher shards.
        significant_range_only: Narrow the mine-count window to the central
            95% of weight when more than 30 mine counts are possible.
        guess_threshold: Fraction of the best safe probability a candidate must
            reach to be offered as an alternative guess.
        binomial_max_exact: Largest n for which binomials are exact.
        binomial_lookup_limit: Rows of Pascal's triangle to precompute.
    """

    brute_force_enabled: bool = True
    max_bfda_solutions: int = 400
    brute_force_max_iterations: int = 1_000_000
    brute_force_max_nodes: int = 150_000
    brute_force_tree_depth: int = 4
    brute_force_max_depth: int = 300
    prune_brute_force: bool = True
    brute_force_workers: int = 4
    significant_range_only: bool = False
    guess_threshold: float = 1.0
    binomial_max_exact: int = 500_000
    binomial_lookup_limit: int = 200

    def __post_init__(self) -> None:
        if self.max_bfda_solutions < 1:
            raise ValueError("max_bfda_solutions must be >= 1.")
        if self.brute_force_max_iterations < 1:
            raise ValueError("brute_force_max_iterations must be >= 1.")
        if self.brute_force_max_nodes < 1:
            raise ValueError("brute_force_max_nodes must be >= 1.")
        if self.brute_force_tree_depth < 0:
            raise ValueError("brute_force_tree_depth must be >= 0.")
        if self.brute_force_max_depth < 1:
            raise ValueError("brute_force_max_depth must be >= 1.")
        if self.brute_force_workers < 1:
            raise ValueError("brute_force_workers must be >= 1.")
        if not 0.0 < self.guess_threshold <= 1.0:
            raise ValueError("guess_threshold must be in (0, 1].")
        if self.binomial_max_exact < self.binomial_lookup_limit:
            raise ValueError("binomial_max_exact must be >= binomial_lookup_limit.")
