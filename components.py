"""
Core rule engine for the minefield puzzle.

This module contains pure domain logic without any pygame or pixel-level
concerns. It defines:
- TileState / Tile: the mutable state of one cell and its fixed position
- Grid: the dense tile collection, coordinate lookup and neighbor queries
- MinePlacer: random mine assignment over still-hidden tiles
- recompute_adjacency / flood_reveal: adjacency counts and the bounded
  cascade that opens contiguous empty regions
- MineField: the stateful API that owns a Grid and the clear counter
- GameStateMachine: PreGame -> Playing -> GameOver / Victory transitions

The presentation layer (run.py) translates pointer positions into tile
positions and calls into GameStateMachine; nothing here knows about
rendering, timing, or input devices.
"""

import enum
import logging
import random
from typing import Callable, Iterator, List, NamedTuple, Optional, Set, Tuple

import config

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# Clockwise from north. Rows grow downwards, so north is row - 1.
NEIGHBOR_OFFSETS: Tuple[Position, ...] = (
    (0, -1), (1, -1), (1, 0), (1, 1),
    (0, 1), (-1, 1), (-1, 0), (-1, -1),
)


class PreconditionViolation(RuntimeError):
    """Raised when a caller breaks a contract of the rule engine.

    These are programming errors upstream (bad coordinate mapping, placing
    mines twice, a corrupted grid) and are never part of normal play.
    """


class RevealOutcome(enum.Enum):
    SAFE = "safe"
    MINE = "mine"
    OUT_OF_BOUNDS = "out_of_bounds"
    ALREADY_REVEALED = "already_revealed"
    FLAGGED = "flagged"


class GamePhase(enum.Enum):
    PRE_GAME = "pre_game"
    PLAYING = "playing"
    GAME_OVER = "game_over"
    VICTORY = "victory"


class TileState:
    """Mutable state of a single tile.

    Attributes:
        is_mine: Whether this tile hides a mine.
        is_revealed: Whether the tile has been opened. Never goes back to False.
        is_flagged: Whether the player marked the tile. Cleared on reveal.
        adjacent: Number of mines among the tile's neighbors (0-8).
    """

    def __init__(self, is_mine: bool = False, is_revealed: bool = False, is_flagged: bool = False, adjacent: int = 0):
        self.is_mine = is_mine
        self.is_revealed = is_revealed
        self.is_flagged = is_flagged
        self.adjacent = adjacent


class Tile:
    """Logical tile positioned on the board by column and row."""

    def __init__(self, col: int, row: int):
        self.col = col
        self.row = row
        self.state = TileState()

    @property
    def position(self) -> Position:
        return (self.col, self.row)

    def __repr__(self) -> str:
        s = self.state
        return (
            f"Tile({self.col}, {self.row}, mine={s.is_mine}, revealed={s.is_revealed}, "
            f"flagged={s.is_flagged}, adjacent={s.adjacent})"
        )


class Grid:
    """Dense cols x rows collection of tiles, stored row-major.

    Read access is free; tile state is only written by the MineField that
    owns the grid (and its placer during mine placement).
    """

    def __init__(self, cols: int, rows: int):
        if cols <= 0 or rows <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {cols}x{rows}")
        self.cols = cols
        self.rows = rows
        self.tiles: List[Tile] = [Tile(c, r) for r in range(rows) for c in range(cols)]

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self.tiles)

    def index(self, col: int, row: int) -> int:
        """Return the flat list index for (col,row)."""
        return row * self.cols + col

    def is_inbounds(self, col: int, row: int) -> bool:
        return 0 <= col < self.cols and 0 <= row < self.rows

    def tile_at(self, position: Position) -> Optional[Tile]:
        """Return the tile at ``position`` or None when it lies off the board."""
        col, row = position
        if not self.is_inbounds(col, row):
            return None
        tile = self.tiles[self.index(col, row)]
        if tile.position != (col, row):
            raise PreconditionViolation(
                f"Tile stored for {(col, row)} reports position {tile.position}"
            )
        return tile

    def neighbors(self, position: Position) -> List[Tile]:
        """Tiles around ``position`` in NEIGHBOR_OFFSETS order; off-board ones are omitted."""
        col, row = position
        result = []
        for dc, dr in NEIGHBOR_OFFSETS:
            tile = self.tile_at((col + dc, row + dr))
            if tile is not None:
                result.append(tile)
        return result


class PlacementResult(NamedTuple):
    mined_count: int
    clear_target: int


class MinePlacer:
    """Randomly plants mines on every tile that is still hidden.

    Each hidden tile independently receives a mine with probability
    ``mine_chance_per_mille / 1000``. Revealed tiles are skipped, which is
    what keeps the first opened tile safe.
    """

    def __init__(self, mine_chance_per_mille: int = config.mine_chance_per_mille, rng: Optional[random.Random] = None):
        if not 0 <= mine_chance_per_mille <= 1000:
            raise ValueError(f"mine_chance_per_mille must be within 0..1000, got {mine_chance_per_mille}")
        self.mine_chance_per_mille = mine_chance_per_mille
        self.rng = rng if rng is not None else random.Random()

    def place(self, grid: Grid) -> PlacementResult:
        mined = 0
        for tile in grid:
            if tile.state.is_revealed:
                continue
            if self.rng.randrange(1000) < self.mine_chance_per_mille:
                tile.state.is_mine = True
                mined += 1
        # Already-revealed tiles are mine-free and count toward the target.
        return PlacementResult(mined_count=mined, clear_target=len(grid) - mined)


def recompute_adjacency(grid: Grid) -> None:
    """Set every tile's adjacent count from the current mine layout."""
    for tile in grid:
        tile.state.adjacent = sum(1 for n in grid.neighbors(tile.position) if n.state.is_mine)


def flood_reveal(
    grid: Grid,
    origin: Position,
    reveal: Callable[[Tile], bool],
    limit: int = config.max_flood_tiles,
) -> Set[Position]:
    """Open the empty region around ``origin`` and its numbered border.

    Uses an explicit work list. Every hidden, mine-free neighbor of an
    expanded tile is opened through ``reveal``; only neighbors with no
    adjacent mines are expanded further. Stops once ``limit`` tiles have
    been opened in this call, even if the region is not exhausted.

    Returns the positions opened by this call.
    """
    start = grid.tile_at(origin)
    if start is None:
        raise PreconditionViolation(f"Flood origin {origin} is not on the board")

    opened: Set[Position] = set()
    work = [start]
    while work and len(opened) < limit:
        tile = work.pop()
        for neighbor in grid.neighbors(tile.position):
            if len(opened) >= limit:
                break
            if neighbor.state.is_revealed or neighbor.state.is_mine:
                continue
            reveal(neighbor)
            opened.add(neighbor.position)
            if neighbor.state.adjacent == 0:
                work.append(neighbor)
    return opened


class MineField:
    """Minefield state and rules for one game.

    Responsibilities:
    - Own the Grid and every write to tile state
    - Defer mine placement until asked (first-click safety is arranged by
      revealing the clicked tile before calling populate_mines)
    - Keep ``remaining_safe_tiles`` equal to the number of hidden
      mine-free tiles once mines are placed
    - Reveal tiles (bounded flood fill when adjacent == 0) and toggle flags

    A MineField is never reset; a new game gets a new instance.
    """

    def __init__(self, cols: int, rows: int, placer: Optional[MinePlacer] = None, flood_limit: int = config.max_flood_tiles):
        logger.debug("Generating new minefield of %dx%d tiles", cols, rows)
        self.grid = Grid(cols, rows)
        self.placer = placer if placer is not None else MinePlacer()
        self.flood_limit = flood_limit
        self.remaining_safe_tiles = 0
        self._mines_placed = False
        logger.debug("Total tiles generated: %d", len(self.grid))

    @property
    def cols(self) -> int:
        return self.grid.cols

    @property
    def rows(self) -> int:
        return self.grid.rows

    @property
    def mines_placed(self) -> bool:
        return self._mines_placed

    def __iter__(self) -> Iterator[Tile]:
        return iter(self.grid)

    def tile_at(self, position: Position) -> Optional[Tile]:
        return self.grid.tile_at(position)

    def neighbors(self, position: Position) -> List[Tile]:
        return self.grid.neighbors(position)

    def populate_mines(self) -> PlacementResult:
        """Plant mines on hidden tiles and compute adjacency. Once per field."""
        if self._mines_placed:
            raise PreconditionViolation("Mines have already been placed on this field")
        result = self.placer.place(self.grid)
        recompute_adjacency(self.grid)
        revealed_safe = sum(1 for t in self.grid if t.state.is_revealed and not t.state.is_mine)
        self.remaining_safe_tiles = result.clear_target - revealed_safe
        self._mines_placed = True
        logger.debug(
            "Placed %d mines, clear target %d, %d safe tiles left",
            result.mined_count, result.clear_target, self.remaining_safe_tiles,
        )
        return result

    def _reveal_tile(self, tile: Tile) -> bool:
        """Open one tile. Returns False if it was already open."""
        if tile.state.is_revealed:
            return False
        tile.state.is_revealed = True
        tile.state.is_flagged = False
        if self._mines_placed and not tile.state.is_mine:
            if self.remaining_safe_tiles <= 0:
                raise PreconditionViolation("Safe tile counter would drop below zero")
            self.remaining_safe_tiles -= 1
        return True

    def reveal(self, position: Position) -> RevealOutcome:
        tile = self.grid.tile_at(position)
        if tile is None:
            return RevealOutcome.OUT_OF_BOUNDS
        if tile.state.is_revealed:
            return RevealOutcome.ALREADY_REVEALED
        if tile.state.is_flagged:
            return RevealOutcome.FLAGGED

        self._reveal_tile(tile)
        if tile.state.is_mine:
            return RevealOutcome.MINE

        # Before placement every count is zero, so there is nothing to cascade into yet.
        if self._mines_placed and tile.state.adjacent == 0:
            self.flood_reveal_from(position)
        return RevealOutcome.SAFE

    def flood_reveal_from(self, position: Position) -> Set[Position]:
        return flood_reveal(self.grid, position, self._reveal_tile, self.flood_limit)

    def toggle_flag(self, position: Position) -> bool:
        """Flip the flag on a hidden tile and return its new flagged state."""
        tile = self.grid.tile_at(position)
        if tile is None:
            return False
        if tile.state.is_revealed:
            return tile.state.is_flagged
        tile.state.is_flagged = not tile.state.is_flagged
        return tile.state.is_flagged

    def is_cleared(self) -> bool:
        return self._mines_placed and self.remaining_safe_tiles == 0

    def flagged_count(self) -> int:
        return sum(1 for t in self.grid if t.state.is_flagged)

    def mine_count(self) -> int:
        return sum(1 for t in self.grid if t.state.is_mine)

    def render_ascii(self, show_mines: bool = False) -> str:
        rows = []
        for r in range(self.rows):
            row = []
            for c in range(self.cols):
                s = self.grid.tiles[self.grid.index(c, r)].state
                if s.is_flagged:
                    row.append('F')
                elif s.is_mine and (s.is_revealed or show_mines):
                    row.append('*')
                elif not s.is_revealed:
                    row.append('#')
                elif s.adjacent == 0:
                    row.append('.')
                else:
                    row.append(str(s.adjacent))
            rows.append(' '.join(row))
        return '\n'.join(rows)


class GameStateMachine:
    """Decides which MineField operation a player action maps to.

    The machine owns the current MineField and replaces it wholesale on
    restart. ``field_factory`` builds a fresh field; tests use it to inject
    a deterministic placer.
    """

    def __init__(self, cols: int = config.cols, rows: int = config.rows, field_factory: Optional[Callable[[int, int], MineField]] = None):
        self.cols = cols
        self.rows = rows
        self.field_factory = field_factory if field_factory is not None else MineField
        self.phase = GamePhase.PRE_GAME
        self.field = self.field_factory(cols, rows)

    @property
    def finished(self) -> bool:
        return self.phase in (GamePhase.GAME_OVER, GamePhase.VICTORY)

    def left_click(self, position: Position) -> Optional[RevealOutcome]:
        """Reveal a tile. Returns None when the game has already ended."""
        if self.phase == GamePhase.PRE_GAME:
            return self._first_reveal(position)
        if self.phase != GamePhase.PLAYING:
            return None

        outcome = self.field.reveal(position)
        if outcome == RevealOutcome.MINE:
            self.phase = GamePhase.GAME_OVER
            logger.info("Game over: mine at %s", position)
        elif outcome == RevealOutcome.SAFE and self.field.is_cleared():
            self._win()
        return outcome

    def _first_reveal(self, position: Position) -> RevealOutcome:
        # Reveal before placing so the placer skips the clicked tile.
        outcome = self.field.reveal(position)
        if outcome != RevealOutcome.SAFE:
            return outcome
        self.field.populate_mines()
        if self.field.tile_at(position).state.adjacent == 0:
            self.field.flood_reveal_from(position)
        self.phase = GamePhase.PLAYING
        if self.field.is_cleared():
            self._win()
        return outcome

    def _win(self) -> None:
        self.phase = GamePhase.VICTORY
        logger.info("Victory: field of %dx%d cleared", self.cols, self.rows)

    def right_click(self, position: Position) -> bool:
        """Toggle a flag while playing. Returns the tile's flagged state."""
        if self.phase != GamePhase.PLAYING:
            tile = self.field.tile_at(position)
            return tile is not None and tile.state.is_flagged
        return self.field.toggle_flag(position)

    def restart(self) -> bool:
        """Start over with a new field. Only honored once the game has ended."""
        if not self.finished:
            return False
        self.field = self.field_factory(self.cols, self.rows)
        self.phase = GamePhase.PRE_GAME
        return True
