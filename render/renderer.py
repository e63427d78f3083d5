# render/renderer.py
import io, math, logging
from typing import Optional, Tuple
import pygame
from config import RenderConfig
from notes.model import MappedPin, TranscriptionResult
from disc.alphabet import DISC_GEOMETRY, GROOVE_WIDTH, TRACK_INNER_RADII
from render.export import sanitize_label

STOCK_COLOR = (200, 200, 205)
INSET_COLOR = (150, 150, 160)
GROOVE_COLOR = (70, 70, 80)
PIN_A_COLOR = (80, 200, 120)
PIN_B_COLOR = (90, 160, 255)
LABEL_COLOR = (30, 30, 36)
MARGIN = 1.02

class DiscRenderer:
    """Top-down preview of the disc: blank, grooves, holes, then pins.

    Side B pins are drawn mirrored (as seen through the disc) in a second color.
    """
    def __init__(self, cfg: RenderConfig):
        self.cfg = cfg
        self.size = int(cfg.size_px)
        self.center = (self.size / 2.0, self.size / 2.0)
        self.px_per_mm = self.size / (2.0 * DISC_GEOMETRY.r_stock * MARGIN)

    def to_screen(self, x_mm: float, y_mm: float) -> Tuple[float, float]:
        cx, cy = self.center
        return cx + x_mm * self.px_per_mm, cy - y_mm * self.px_per_mm

    def pin_polygon(self, pin: MappedPin):
        g = DISC_GEOMETRY
        angle = pin.angle_radians if pin.side != "B" else -pin.angle_radians
        ca, sa = math.cos(angle), math.sin(angle)
        y0 = g.pin_offset
        y1 = g.pin_offset + g.pin_width
        corners = [(pin.inner_radius, y0), (pin.outer_radius, y0), (pin.outer_radius, y1), (pin.inner_radius, y1)]
        return [self.to_screen(x * ca - y * sa, x * sa + y * ca) for x, y in corners]

    def _circle(self, surf, color, r_mm: float, width_mm: float = 0.0):
        c = (int(round(self.center[0])), int(round(self.center[1])))
        r = max(1, int(round(r_mm * self.px_per_mm)))
        w = 0 if width_mm <= 0 else max(1, int(round(width_mm * self.px_per_mm)))
        pygame.draw.circle(surf, color, c, r, w)

    def _draw_blank(self, surf):
        g = DISC_GEOMETRY
        surf.fill(self.cfg.background)
        self._circle(surf, STOCK_COLOR, g.r_stock)
        self._circle(surf, INSET_COLOR, g.r_inset)
        for inner in TRACK_INNER_RADII:
            self._circle(surf, GROOVE_COLOR, inner + GROOVE_WIDTH, GROOVE_WIDTH)
        self._circle(surf, self.cfg.background, g.r_center)
        for dx, dy in ((0, g.o_drive), (0, -g.o_drive), (g.o_drive, 0), (-g.o_drive, 0)):
            x, y = self.to_screen(dx, dy)
            pygame.draw.circle(surf, self.cfg.background, (int(round(x)), int(round(y))),
                               max(1, int(round(g.r_drive * self.px_per_mm))))

    def _draw_label(self, surf, text: str, side: str = "A"):
        label = sanitize_label(text)
        if not label:
            return None
        try:
            pygame.font.init()
            font = pygame.font.Font(None, self.cfg.label_font_px)
            img = font.render(label, True, LABEL_COLOR)
        except pygame.error:
            logging.warning("label font unavailable, skipping label %r", label)
            return None
        # A 標籤在中心孔下方；B 標籤在上方並左右鏡像
        offset = DISC_GEOMETRY.r_center + 4.0
        if side == "B":
            img = pygame.transform.flip(img, True, False)
        else:
            offset = -offset
        x, y = self.to_screen(0.0, offset)
        rect = img.get_rect(center=(int(x), int(y)))
        surf.blit(img, rect)
        return rect

    def build(self, result: TranscriptionResult, label_a: str = "", label_b: Optional[str] = None) -> pygame.Surface:
        surf = pygame.Surface((self.size, self.size))
        self._draw_blank(surf)
        for pin in result.side_b_pins:
            pygame.draw.polygon(surf, PIN_B_COLOR, self.pin_polygon(pin))
        for pin in result.pins:
            pygame.draw.polygon(surf, PIN_A_COLOR, self.pin_polygon(pin))
        self._draw_label(surf, label_a)
        if label_b is not None:
            self._draw_label(surf, label_b, "B")
        logging.debug("DiscRenderer: %d pins drawn at %.3f px/mm", result.total_pin_count, self.px_per_mm)
        return surf

    def serialize(self, model: pygame.Surface) -> bytes:
        buf = io.BytesIO()
        pygame.image.save(model, buf, "preview.png")
        return buf.getvalue()
