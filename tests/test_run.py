"""
Tests for the pixel -> tile contract of the pygame front end.
No window is opened.
"""

import pytest

pytest.importorskip("pygame")

import config
from components import GamePhase, GameStateMachine
from run import InputController


@pytest.fixture
def controller():
    return InputController(GameStateMachine(config.cols, config.rows))


def test_pos_to_grid_maps_pixels_to_tiles(controller):
    size = config.cell_size
    assert controller.pos_to_grid(config.margin_left, config.margin_top) == (0, 0)
    assert controller.pos_to_grid(config.margin_left + size - 1, config.margin_top) == (0, 0)
    assert controller.pos_to_grid(config.margin_left + size, config.margin_top + 2 * size) == (1, 2)
    last_x = config.margin_left + config.cols * size - 1
    last_y = config.margin_top + config.rows * size - 1
    assert controller.pos_to_grid(last_x, last_y) == (config.cols - 1, config.rows - 1)


def test_pos_to_grid_outside_board_is_none(controller):
    assert controller.pos_to_grid(config.margin_left - 1, config.margin_top) is None
    assert controller.pos_to_grid(config.margin_left + config.cols * config.cell_size, config.margin_top) is None
    assert controller.pos_to_grid(config.margin_left, config.margin_top + config.rows * config.cell_size) is None


def test_handle_mouse_forwards_clicks(controller):
    game = controller.game
    controller.handle_mouse((config.margin_left + 1, config.margin_top + 1), config.mouse_right)
    assert game.field.flagged_count() == 0
    controller.handle_mouse((config.margin_left + 1, config.margin_top + 1), config.mouse_left)
    assert game.phase in (GamePhase.PLAYING, GamePhase.VICTORY)
    assert game.field.tile_at((0, 0)).state.is_revealed


def test_handle_mouse_ignores_clicks_off_board(controller):
    controller.handle_mouse((-5, -5), config.mouse_left)
    assert controller.game.phase == GamePhase.PRE_GAME


def test_restart_keys_are_space_and_r():
    import pygame
    assert set(config.restart_keys) == {pygame.K_SPACE, pygame.K_r}
