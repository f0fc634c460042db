"""Tests for minesolver.settings."""

import pytest

from minesolver.settings import SolverSettings


def test_defaults():
    settings = SolverSettings()

    assert settings.brute_force_enabled
    assert settings.max_bfda_solutions == 400
    assert settings.brute_force_tree_depth == 4
    assert settings.guess_threshold == 1.0


@pytest.mark.parametrize(
    "field, value",
    [
        ("max_bfda_solutions", 0),
        ("brute_force_max_iterations", 0),
        ("brute_force_max_nodes", 0),
        ("brute_force_tree_depth", -1),
        ("brute_force_max_depth", 0),
        ("brute_force_workers", 0),
        ("guess_threshold", 0.0),
        ("guess_threshold", 1.5),
        ("binomial_max_exact", 10),
    ],
)
def test_invalid_settings(field, value):
    with pytest.raises(ValueError):
        SolverSettings(**{field: value})
