"""
Minesweeper Exact Solver - Interactive Demo

Run with: streamlit run app/demo.py
"""

import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import streamlit as st
from typing import List, Optional, Set, Tuple

from minesolver import (
    ActionType,
    GameAction,
    GameDescription,
    GameStatus,
    Minesweeper,
    MinesweeperSolver,
    SolverSettings,
)
from minesolver.analysis import choose_actions_to_play, first_click

logger = logging.getLogger(__name__)

NUMBER_COLORS = {
    "1": "#0000ff",
    "2": "#008000",
    "3": "#ff0000",
    "4": "#000080",
    "5": "#800000",
    "6": "#008080",
    "7": "#000000",
    "8": "#808080",
}


def probability_color(probability: float) -> str:
    """Shade from red (certain mine) through yellow to green (certainly safe)."""
    if probability < 0.5:
        red, green = 255, int(510 * probability)
    else:
        red, green = int(510 * (1.0 - probability)), 255
    return f"#{red:02x}{green:02x}60"


def render_board_html(
    game: Minesweeper,
    solver: MinesweeperSolver,
    highlight: Optional[Set[Tuple[int, int]]] = None,
    show_mines: bool = False,
    show_probabilities: bool = True,
) -> str:
    """Render the board as HTML, shading hidden tiles by safe probability."""
    # Scale cell size based on board width
    if game.width >= 30:
        cell_size = 22
        font_size = "9px"
    elif game.width >= 16:
        cell_size = 28
        font_size = "10px"
    else:
        cell_size = 34
        font_size = "12px"

    highlight = highlight or set()
    info = solver.info

    html = '<div style="font-family: monospace; line-height: 1.2;">'
    html += '<table style="border-collapse: collapse; margin: auto;">'

    for y in range(game.height):
        html += "<tr>"
        for x in range(game.width):
            tile = info.tile(x, y)
            text_color = "#000000"

            if (x, y) in game.exploded:
                display, bg, text_color = "M", "#ff0000", "#ffffff"
            elif game.flagged[y][x]:
                display, bg, text_color = "F", "#ffa500", "#ffffff"
            elif game.revealed[y][x]:
                cell = game.board[y][x]
                display = cell if cell != "0" else " "
                bg = "#f0f0f0" if cell == "0" else "#ffffff"
                text_color = NUMBER_COLORS.get(cell, "#000000")
            elif show_mines and game.board[y][x] == "M":
                display, bg, text_color = "M", "#ffcccc", "#ff0000"
            else:
                probability = solver.get_probability(x, y) if show_probabilities else None
                if probability is None:
                    display, bg, text_color = ".", "#c0c0c0", "#666666"
                else:
                    display = f"{probability * 100:.0f}"
                    bg = probability_color(probability)
                if tile.is_dead:
                    text_color = "#7f00ff"

            border = "3px solid #0000ff" if (x, y) in highlight else "1px solid #999"

            html += f'''<td style="
                width: {cell_size}px; height: {cell_size}px;
                text-align: center;
                background: {bg};
                border: {border};
                color: {text_color};
                font-weight: bold;
                font-size: {font_size};
            ">{display}</td>'''
        html += "</tr>"

    html += "</table></div>"
    return html


def new_game(description: GameDescription, seed: Optional[int], settings: SolverSettings) -> None:
    game = Minesweeper(description, seed=seed)
    solver = MinesweeperSolver(description, settings)

    x, y = first_click(description)
    solver.add_information(game.process_actions([GameAction(x, y, ActionType.CLEAR)]))

    st.session_state.game = game
    st.session_state.solver = solver
    st.session_state.moves = 1
    st.session_state.last_played = {(x, y)}
    st.session_state.log = [f"Opening click at ({x},{y})"]
    st.session_state.stuck = False


def step(max_cycles: int = 1) -> None:
    """Run up to max_cycles solver cycles against the current game."""
    game: Minesweeper = st.session_state.game
    solver: MinesweeperSolver = st.session_state.solver

    for _ in range(max_cycles):
        if game.status is not GameStatus.IN_PLAY:
            return

        header = solver.find_actions()
        if header.infeasible or not header.actions:
            st.session_state.stuck = True
            st.session_state.log.append("No move available")
            return

        to_play = choose_actions_to_play(header.actions)
        for action in to_play:
            st.session_state.log.append(action.as_text())

        solver.add_information(game.process_actions(to_play))
        st.session_state.moves += len(to_play)
        st.session_state.last_played = {(a.x, a.y) for a in to_play}


def main():
    st.set_page_config(
        page_title="Minesweeper Exact Solver",
        page_icon="💣",
        layout="wide",
    )
    logging.basicConfig(level=logging.INFO)

    st.title("Minesweeper Exact Solver")
    st.markdown("""
    Exact safe probabilities for every hidden tile, with brute-force search near the end of the game.
    """)

    # Sidebar configuration
    st.sidebar.header("Game Configuration")

    preset = st.sidebar.selectbox(
        "Difficulty Preset",
        ["Beginner (9x9, 10)", "Intermediate (16x16, 40)", "Expert (30x16, 99)", "Custom"],
    )

    if preset == "Beginner (9x9, 10)":
        width, height, mines = 9, 9, 10
    elif preset == "Intermediate (16x16, 40)":
        width, height, mines = 16, 16, 40
    elif preset == "Expert (30x16, 99)":
        width, height, mines = 30, 16, 99
    else:
        width = st.sidebar.slider("Width", 5, 30, 16)
        height = st.sidebar.slider("Height", 5, 30, 16)
        max_mines = width * height - 9
        mines = st.sidebar.slider("Mines", 1, max_mines, min(40, max_mines))

    algorithm = st.sidebar.selectbox(
        "Mine Generation",
        ["safe_first_action_rule", "safe_neighborhood_rule"],
        help="safe_first_action_rule: Only first click is safe. "
             "safe_neighborhood_rule: First click + neighbors are safe.",
    )

    seed_text = st.sidebar.text_input("Seed (blank for random)", "")
    seed: Optional[int] = int(seed_text) if seed_text.strip().isdigit() else None

    st.sidebar.header("Solver Settings")
    brute_force_enabled = st.sidebar.checkbox("Brute force endgames", value=True)
    max_bfda_solutions = st.sidebar.slider("Brute force solution limit", 50, 1000, 400, step=50)
    show_probabilities = st.sidebar.checkbox("Show safe probabilities", value=True)

    settings = SolverSettings(
        brute_force_enabled=brute_force_enabled,
        max_bfda_solutions=max_bfda_solutions,
    )

    description = GameDescription(width, height, mines, algorithm)

    # Start a new game when board settings change
    current_settings = (width, height, mines, algorithm, seed, brute_force_enabled, max_bfda_solutions)
    if st.session_state.get("prev_settings") != current_settings:
        new_game(description, seed, settings)
        st.session_state.prev_settings = current_settings

    col1, col2 = st.columns([3, 1]) if width < 30 else st.columns([4, 1])

    with col1:
        st.subheader("Game Board")

        btn_col1, btn_col2, btn_col3 = st.columns(3)
        with btn_col1:
            if st.button("New Game", type="primary"):
                new_game(description, seed, settings)
                st.rerun()
        with btn_col2:
            if st.button("Step"):
                step()
                st.rerun()
        with btn_col3:
            if st.button("Solve"):
                step(max_cycles=10_000)
                st.rerun()

        game: Minesweeper = st.session_state.game
        solver: MinesweeperSolver = st.session_state.solver
        finished = game.status in (GameStatus.WON, GameStatus.LOST)

        html = render_board_html(
            game,
            solver,
            highlight=st.session_state.last_played,
            show_mines=finished,
            show_probabilities=show_probabilities,
        )
        st.markdown(html, unsafe_allow_html=True)

        if game.status is GameStatus.WON:
            st.success("Solved! All safe cells revealed.")
        elif game.status is GameStatus.LOST:
            st.error("Game Over! Hit a mine.")
        elif st.session_state.stuck:
            st.warning("The solver found no move for this position.")

        # Board legend
        st.markdown("""
        <div style="font-size: 12px; margin-top: 10px;">
        <b>Legend:</b>
        <span style="background: #c0c0c0; color: #666666; padding: 2px 6px; margin: 0 4px; font-weight: bold;">.</span> Not analysed
        <span style="background: #60ff60; padding: 2px 6px; margin: 0 4px; font-weight: bold;">100</span> Safe probability (%)
        <span style="color: #7f00ff; font-weight: bold; margin: 0 4px;">75</span> Dead tile
        <span style="background: #ffa500; color: white; padding: 2px 6px; margin: 0 4px; font-weight: bold;">F</span> Flagged
        <span style="background: #ff0000; color: white; padding: 2px 6px; margin: 0 4px; font-weight: bold;">M</span> Hit mine
        </div>
        """, unsafe_allow_html=True)

    with col2:
        st.subheader("Solver Statistics")

        info = solver.info
        st.metric("Status", game.status.value.replace("_", " ").title())
        st.metric("Moves", st.session_state.moves)
        st.metric("Mines left", info.mines_left)

        counters = solver.counters()
        st.markdown("---")
        st.markdown("**Moves by strategy**")
        lines: List[str] = [
            f"Trivial: {counters['trivial']}",
            f"Local clears: {counters['local_clear']}",
            f"Probability engine: {counters['probability']}",
            f"Brute force: {counters['brute_force']}",
            f"Guesses: {counters['guess']}",
        ]
        for line in lines:
            st.text(line)

        pe = info.probability_engine
        if pe is not None and not pe.is_infeasible:
            st.markdown("---")
            st.markdown("**Latest analysis**")
            st.text(f"Solutions: {pe.solution_count}")
            st.text(f"Off-edge safe: {pe.off_edge_probability:.4f}")
            st.text(f"Dead tiles: {len(info.dead_tiles)}")

        st.markdown("---")
        st.markdown("**Recent actions**")
        st.text("\n".join(st.session_state.log[-12:]))


if __name__ == "__main__":
    main()
