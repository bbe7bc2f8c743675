# visualization.py
"""
Handles the visualization of the simulation and user input using Pygame.
"""
import logging
import pygame
from typing import Any, Dict, Optional, Tuple

from constants import (
    BACKGROUND_COLOR, FULLSCREEN, WINDOW_WIDTH, WINDOW_HEIGHT, WINDOW_TITLE,
    DEFAULT_FOCAL_STRENGTH, FOCAL_STRENGTH_STEP, UI_FONT_SIZE,
    UI_HINT_FONT_SIZE, UI_OFFSET, UI_TEXT_COLOR, CURSOR_RADIUS,
    CURSOR_FILL_COLOR, CURSOR_OUTLINE_COLOR, CURSOR_OUTLINE_WIDTH
)
from world import World

ENTITY_SHAPES = ("circle", "rectangle")

# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, vis_params: Dict[str, Any], sim_params: Dict[str, Any]):
#     - Inputs:
#       - vis_params: the "visualization" config section.
#         - "fullscreen": bool, "window_size": [w, h],
#           "entity_shape": "circle" | "rectangle",
#           "draw_cursor": bool, "color_mapping": bool
#       - sim_params: the "simulation_parameters" config section.
#         - "focal_strength": float, "focal_strength_step": float
#     - Side Effects: Initializes Pygame and creates a display surface.
#       Raises ValueError for an unknown entity_shape.
#
#   - poll_events(self) -> bool:
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: Updates the input state (follow_focus, focus_inverse,
#       draw_cursor, color_mapping, focal_strength).
#
#   - update_focus_point(self) -> Tuple[float, float]:
#     - Outputs: The mouse position mapped into arena coordinates.
#
#   - draw(self, world: World) -> None:
#     - Side Effects: Renders entities, the cursor and UI to the screen.

class Visualizer:
    """
    Renders the world state and turns mouse/keyboard input into focal point
    controls.

    The arena is drawn on a surface with a fixed logical size, which is
    scaled to the display when running fullscreen.
    """
    def __init__(self, vis_params: Optional[Dict[str, Any]] = None, sim_params: Optional[Dict[str, Any]] = None):
        vis_params = vis_params if vis_params is not None else {}
        sim_params = sim_params if sim_params is not None else {}

        self.entity_shape = vis_params.get('entity_shape', 'circle')
        if self.entity_shape not in ENTITY_SHAPES:
            msg = (
                f"Configuration error: entity_shape '{self.entity_shape}' "
                f"is not one of {ENTITY_SHAPES}."
            )
            logging.critical(msg)
            raise ValueError(msg)

        pygame.init()
        pygame.font.init()

        self.sim_width, self.sim_height = vis_params.get('window_size', (WINDOW_WIDTH, WINDOW_HEIGHT))
        if vis_params.get('fullscreen', FULLSCREEN):
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width, height = self.sim_width, self.sim_height
            self.screen = pygame.display.set_mode((width, height))
        self.display_width, self.display_height = width, height

        pygame.display.set_caption(WINDOW_TITLE)
        self.clock = pygame.time.Clock()

        self.sim_surface = pygame.Surface((self.sim_width, self.sim_height))
        # Entities are drawn on their own alpha layer so their RGBA colors
        # blend with the background instead of overwriting it.
        self.entity_layer = pygame.Surface((self.sim_width, self.sim_height), pygame.SRCALPHA)
        self.cursor_surface = self._pre_render_cursor()

        self.font_main = pygame.font.SysFont(None, UI_FONT_SIZE)
        self.font_hint = pygame.font.SysFont(None, UI_HINT_FONT_SIZE)

        # --- Input State ---
        self.follow_focus = False
        self.focus_inverse = False
        self.user_has_clicked = False
        self.draw_cursor = vis_params.get('draw_cursor', True)
        self.color_mapping = vis_params.get('color_mapping', True)
        self.focal_strength = sim_params.get('focal_strength', DEFAULT_FOCAL_STRENGTH)
        self.focal_strength_step = sim_params.get('focal_strength_step', FOCAL_STRENGTH_STEP)
        self.focus_point = (self.sim_width / 2.0, self.sim_height / 2.0)

        pygame.mouse.set_visible(not self.draw_cursor)

        logging.info(
            f"Visualizer initialized with Pygame display ({width}x{height}), "
            f"arena surface {self.sim_width}x{self.sim_height}."
        )

    def arena_bounds(self, margin: float) -> Tuple[float, float, float, float]:
        """The arena rectangle inside the logical surface, inset by margin."""
        return (margin, margin, self.sim_width - margin, self.sim_height - margin)

    def _pre_render_cursor(self) -> pygame.Surface:
        diameter = (CURSOR_RADIUS + CURSOR_OUTLINE_WIDTH) * 2
        surf = pygame.Surface((diameter, diameter), pygame.SRCALPHA)
        center = (diameter // 2, diameter // 2)
        pygame.draw.circle(surf, CURSOR_FILL_COLOR, center, CURSOR_RADIUS)
        pygame.draw.circle(surf, CURSOR_OUTLINE_COLOR, center, CURSOR_RADIUS + CURSOR_OUTLINE_WIDTH, CURSOR_OUTLINE_WIDTH)
        return surf

    def poll_events(self) -> bool:
        """
        Handles pending Pygame events.

        Returns:
            bool: False if the simulation should exit, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.MOUSEBUTTONDOWN:
                self.follow_focus = not self.follow_focus
                self.user_has_clicked = True
                logging.info(f"Focal point {'enabled' if self.follow_focus else 'disabled'} by user.")

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    logging.info("ESC key pressed. Shutting down visualizer.")
                    return False
                elif event.key == pygame.K_e:
                    self.focus_inverse = not self.focus_inverse
                    logging.info(f"Focal point {'repels' if self.focus_inverse else 'attracts'}.")
                elif event.key == pygame.K_r:
                    self.draw_cursor = not self.draw_cursor
                    pygame.mouse.set_visible(not self.draw_cursor)
                elif event.key == pygame.K_t:
                    self.color_mapping = not self.color_mapping
                    logging.info(f"Color mapping {'enabled' if self.color_mapping else 'disabled'}.")
                elif event.key in (pygame.K_KP_MINUS, pygame.K_MINUS):
                    self._change_focal_strength(-self.focal_strength_step)
                elif event.key in (pygame.K_KP_PLUS, pygame.K_PLUS, pygame.K_EQUALS):
                    self._change_focal_strength(self.focal_strength_step)
        return True

    def _change_focal_strength(self, delta: float) -> None:
        old_value = self.focal_strength
        self.focal_strength += delta
        logging.info(f"Focal strength changed. Old: {old_value:.3f}, New: {self.focal_strength:.3f}")

    def update_focus_point(self) -> Tuple[float, float]:
        """Maps the mouse position from display pixels into arena coordinates."""
        mouse_x, mouse_y = pygame.mouse.get_pos()
        self.focus_point = (
            World.map(mouse_x, 0.0, self.display_width, 0.0, self.sim_width),
            World.map(mouse_y, 0.0, self.display_height, 0.0, self.sim_height),
        )
        return self.focus_point

    def _draw_entities(self, world: World) -> None:
        batch = world.batch
        positions = batch.positions.tolist()
        colors = batch.colors.tolist()
        sizes = batch.sizes.tolist()

        if self.entity_shape == "circle":
            for pos, color, size in zip(positions, colors, sizes):
                pygame.draw.circle(self.entity_layer, color, (int(pos[0]), int(pos[1])), max(1, int(size)))
            return

        # Rectangles are twice as long as they are wide, aligned with the heading.
        headings = batch.headings
        for pos, color, size, (hx, hy) in zip(positions, colors, sizes, headings.tolist()):
            half_len = size
            half_wid = size / 2.0
            nx, ny = -hy, hx
            corners = [
                (pos[0] + hx * half_len + nx * half_wid, pos[1] + hy * half_len + ny * half_wid),
                (pos[0] + hx * half_len - nx * half_wid, pos[1] + hy * half_len - ny * half_wid),
                (pos[0] - hx * half_len - nx * half_wid, pos[1] - hy * half_len - ny * half_wid),
                (pos[0] - hx * half_len + nx * half_wid, pos[1] - hy * half_len + ny * half_wid),
            ]
            pygame.draw.polygon(self.entity_layer, color, corners)

    def _draw_ui(self) -> None:
        force_surf = self.font_main.render(f"force: {self.focal_strength:.3f}", True, UI_TEXT_COLOR)
        self.screen.blit(force_surf, (UI_OFFSET, UI_OFFSET))

        fps_surf = self.font_main.render(f"fps: {int(self.clock.get_fps())}", True, UI_TEXT_COLOR)
        self.screen.blit(fps_surf, (UI_OFFSET, UI_OFFSET * 3))

        if not self.user_has_clicked:
            hint_surf = self.font_hint.render("click anywhere", True, UI_TEXT_COLOR)
            hint_rect = hint_surf.get_rect(center=(self.display_width / 2, self.display_height / 2))
            self.screen.blit(hint_surf, hint_rect)

    def draw(self, world: World) -> None:
        """
        Draws all entities, the cursor and the UI labels.
        """
        self.sim_surface.fill(BACKGROUND_COLOR)
        self.entity_layer.fill((0, 0, 0, 0))
        self._draw_entities(world)
        self.sim_surface.blit(self.entity_layer, (0, 0))

        if self.draw_cursor:
            rect = self.cursor_surface.get_rect(center=(int(self.focus_point[0]), int(self.focus_point[1])))
            self.sim_surface.blit(self.cursor_surface, rect)

        if (self.display_width, self.display_height) == (self.sim_width, self.sim_height):
            self.screen.blit(self.sim_surface, (0, 0))
        else:
            scaled = pygame.transform.smoothscale(self.sim_surface, (self.display_width, self.display_height))
            self.screen.blit(scaled, (0, 0))

        self._draw_ui()

        pygame.display.flip()
        self.clock.tick()

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
