import logging
import random
from typing import Dict, Optional, Tuple

import pygame
from pygame.locals import Rect

import config
from components import GamePhase, GameStateMachine, Position, Tile

logger = logging.getLogger(__name__)

# ============================ Renderer ============================
class Renderer:
    def __init__(self, screen: pygame.Surface, game: GameStateMachine):
        self.screen = screen
        self.game = game
        self.font = pygame.font.Font(config.font_name, config.font_size)
        self.result_font = pygame.font.Font(config.font_name, config.result_font_size)
        self.shades: Dict[Position, Tuple[int, int, int]] = {}

    def cell_rect(self, col: int, row: int) -> pygame.Rect:
        x = config.margin_left + col * config.cell_size
        y = config.margin_top + row * config.cell_size
        return Rect(x, y, config.cell_size - config.cell_gap, config.cell_size - config.cell_gap)

    def hidden_shade(self, position: Position) -> Tuple[int, int, int]:
        shade = self.shades.get(position)
        if shade is None:
            shade = (
                random.randint(*config.hidden_shade_red),
                random.randint(*config.hidden_shade_green),
                random.randint(*config.hidden_shade_blue),
            )
            self.shades[position] = shade
        return shade

    def reset_shades(self) -> None:
        self.shades.clear()

    def draw_tile(self, tile: Tile) -> None:
        state = tile.state
        rect = self.cell_rect(tile.col, tile.row)
        lost = self.game.phase == GamePhase.GAME_OVER

        if state.is_revealed:
            pygame.draw.rect(self.screen, config.color_cell_revealed, rect)
        else:
            pygame.draw.rect(self.screen, self.hidden_shade(tile.position), rect)

        if lost and state.is_mine:
            pygame.draw.circle(self.screen, config.color_cell_mine, rect.center, rect.width // 4)

        if state.is_flagged:
            pole_x = rect.left + rect.width // 3
            pole_y = rect.top + 4
            flag_h = rect.height // 2
            pygame.draw.line(self.screen, config.color_flag, (pole_x, pole_y), (pole_x, pole_y + flag_h), 2)
            pygame.draw.polygon(self.screen, config.color_flag, [
                (pole_x + 2, pole_y),
                (pole_x + 2 + rect.width // 3, pole_y + flag_h // 3),
                (pole_x + 2, pole_y + flag_h // 2),
            ])

        if state.is_revealed and not state.is_mine and state.adjacent > 0:
            color = config.number_colors.get(state.adjacent, config.number_color_danger)
            label = self.font.render(str(state.adjacent), True, color)
            self.screen.blit(label, label.get_rect(center=rect.center))

    def draw_result_overlay(self, text: Optional[str]) -> None:
        if not text: return
        overlay = pygame.Surface((config.width, config.height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, config.result_overlay_alpha))
        self.screen.blit(overlay, (0, 0))
        for i, line in enumerate(text.split("\n")):
            label = self.result_font.render(line, True, config.color_result)
            center = (config.width // 2, config.height // 2 + i * (config.result_font_size + 4))
            self.screen.blit(label, label.get_rect(center=center))

# ============================ Input ============================
class InputController:
    def __init__(self, game: GameStateMachine):
        self.game = game

    def pos_to_grid(self, x: int, y: int) -> Optional[Position]:
        if not (config.margin_left <= x < config.margin_left + self.game.cols * config.cell_size): return None
        if not (config.margin_top <= y < config.margin_top + self.game.rows * config.cell_size): return None
        col = (x - config.margin_left) // config.cell_size
        row = (y - config.margin_top) // config.cell_size
        return (col, row)

    def handle_mouse(self, pos, button) -> None:
        position = self.pos_to_grid(pos[0], pos[1])
        if position is None: return
        if button == config.mouse_left:
            self.game.left_click(position)
        elif button == config.mouse_right:
            self.game.right_click(position)

# ============================ Game ============================
RESULT_TEXT = {
    GamePhase.GAME_OVER: "Game Over!\nPress space to restart.",
    GamePhase.VICTORY: "Cleared!\nPress space to restart.",
}


class Game:
    def __init__(self):
        pygame.init()
        pygame.display.set_caption(config.title)
        self.clock = pygame.time.Clock()
        self.screen = pygame.display.set_mode(config.display_dimension)
        self.state = GameStateMachine(config.cols, config.rows)
        self.renderer = Renderer(self.screen, self.state)
        self.input = InputController(self.state)
        logger.info("Screen width: %d height: %d", config.width, config.height)

    def restart(self) -> None:
        if self.state.restart():
            self.renderer.reset_shades()

    def draw(self):
        self.screen.fill(config.color_bg)
        for tile in self.state.field:
            self.renderer.draw_tile(tile)
        self.renderer.draw_result_overlay(RESULT_TEXT.get(self.state.phase))
        pygame.display.flip()

    def run_step(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT: return False
            if event.type == pygame.KEYUP and event.key in config.restart_keys:
                self.restart()
            if event.type == pygame.MOUSEBUTTONUP:
                self.input.handle_mouse(event.pos, event.button)
        self.draw()
        self.clock.tick(config.fps)
        return True

def main():
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    game = Game()
    while game.run_step(): pass
    pygame.quit()

if __name__ == "__main__":
    main()
