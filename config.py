"""Game-wide constants shared by the rule engine (components.py) and the pygame front end (run.py)."""

import logging

title = "Minefield"
log_level = logging.INFO

# Board, in tiles
cols = 16
rows = 16
mine_chance_per_mille = 91  # one draw in eleven
max_flood_tiles = 100

# Layout, in pixels
cell_size = 32
cell_gap = 2
margin_left = 0
margin_right = 0
margin_top = 0
margin_bottom = 0
width = margin_left + cols * cell_size + margin_right
height = margin_top + rows * cell_size + margin_bottom
display_dimension = (width, height)
fps = 60

# Input
mouse_left = 1
mouse_right = 3
restart_keys = (32, 114)  # space, r

# Fonts
font_name = None
font_size = 22
result_font_size = 28

# Colors
color_bg = (0, 0, 0)
color_cell_revealed = (0, 117, 44)
color_cell_mine = (230, 41, 55)
color_flag = (0, 121, 241)
color_result = (255, 255, 255)
result_overlay_alpha = 150

# Hidden tiles get a random shade within these channel ranges.
hidden_shade_red = (5, 10)
hidden_shade_green = (180, 255)
hidden_shade_blue = (0, 30)

# Adjacent-mine count -> text color
number_colors = {
    1: (0, 121, 241),
    2: (0, 228, 48),
}
number_color_danger = (230, 41, 55)
