import random
from typing import List, Optional

from sudoku_arena.models import GRID_SIZE, Puzzle

# Cells erased from the solved grid per difficulty
ERASED_CELLS = {
    'easy': 30,
    'medium': 45,
    'hard': 55,
}
DIFFICULTIES = tuple(ERASED_CELLS)


def is_valid_placement(grid: List[int], index: int, digit: int) -> bool:
    row, col = divmod(index, 9)
    box_row = row - row % 3
    box_col = col - col % 3
    for i in range(9):
        if grid[row * 9 + i] == digit or grid[i * 9 + col] == digit:
            return False
        if grid[(box_row + i // 3) * 9 + box_col + i % 3] == digit:
            return False
    return True


def _fill(grid: List[int], rng: random.Random) -> bool:
    for index in range(GRID_SIZE):
        if grid[index]:
            continue
        digits = list(range(1, 10))
        rng.shuffle(digits)
        for digit in digits:
            if is_valid_placement(grid, index, digit):
                grid[index] = digit
                if _fill(grid, rng):
                    return True
                grid[index] = 0
        return False
    return True


def generate_puzzle(difficulty: str = 'medium', rng: Optional[random.Random] = None) -> Puzzle:
    """Build a solved grid by randomized backtracking, then erase cells.

    The number of erased cells depends on `difficulty` (see ERASED_CELLS).
    Pass a seeded `random.Random` for reproducible boards.
    """
    if difficulty not in ERASED_CELLS:
        raise ValueError(f'Unknown difficulty: {difficulty!r}')
    rng = rng or random.Random()
    grid = [0] * GRID_SIZE
    _fill(grid, rng)
    solution = tuple(grid)
    for index in rng.sample(range(GRID_SIZE), ERASED_CELLS[difficulty]):
        grid[index] = 0
    return Puzzle(initial=tuple(grid), solution=solution)


def format_grid(grid) -> str:
    rows = []
    for row in range(9):
        cells = [str(v) if v else '.' for v in grid[row * 9:row * 9 + 9]]
        rows.append(' '.join(cells[0:3]) + ' | ' + ' '.join(cells[3:6]) + ' | ' + ' '.join(cells[6:9]))
        if row in (2, 5):
            rows.append('------+-------+------')
    return '\n'.join(rows)
