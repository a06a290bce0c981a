"""
Angle Backend — Preview Image Service
======================================

What:  Rasterizes the 1200×630 PNG images referenced by og:image/twitter:image.
How:   Pillow composes background, gradient overlay, category tag, headline,
       description and branding. Episode covers are downloaded with httpx.
       Composition is CPU-bound and runs in a worker thread.
Who:   Called by the /api/og-image routes.

Images:
    default   → dark background, optional brand icon, site name + tagline
    episode   → cover background, category tag, title, description, branding
    category  → cover of the category's newest episode, "{Label} Stories";
                falls back to the branded layout when there is no cover

A cover that cannot be fetched or decoded is treated as "no cover": the
image is still produced on the default background.
"""

import asyncio
import logging
from io import BytesIO
from typing import List, Optional, Tuple

import httpx
from PIL import Image, ImageDraw, ImageFont, ImageOps

from angle.config import settings
from angle.schemas.episode import EpisodeOut

logger = logging.getLogger(__name__)

WIDTH = 1200
HEIGHT = 630
SIZE = (WIDTH, HEIGHT)
PADDING = 80

BACKGROUND_DEFAULT = (26, 26, 26, 255)   # #1a1a1a
BACKGROUND_COVER = (0, 0, 0, 255)
TEXT_PRIMARY = (255, 255, 255, 255)
TEXT_SECONDARY = (224, 224, 224, 255)    # #e0e0e0
TAG_FILL = (255, 255, 255, 64)           # white at 25%

DESCRIPTION_LIMIT = 200
LONG_TITLE = 60

FontType = ImageFont.FreeTypeFont


def truncate(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    """Cuts text longer than `limit` to limit-3 characters plus '...'."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def absolute_url(url: str, base_url: str) -> str:
    """Site-relative cover URLs are resolved against the request's base URL."""
    if url.startswith(("http://", "https://")):
        return url
    if not url.startswith("/"):
        url = "/" + url
    return f"{base_url}{url}"


class OgImageService:
    """
    Produces PNG bytes for the three preview image kinds.

    Args:
        font_path / bold_font_path: TrueType fonts for body / headline text.
            Pillow's bundled font is used when unset or unreadable.
        brand_icon_path: Optional local image drawn on the default layout.
        fetch_timeout: Seconds allowed for downloading a cover image.
    """

    def __init__(
        self,
        font_path: Optional[str] = None,
        bold_font_path: Optional[str] = None,
        brand_icon_path: Optional[str] = None,
        fetch_timeout: Optional[float] = None,
    ):
        self.font_path = font_path if font_path is not None else settings.og_font_path
        self.bold_font_path = bold_font_path if bold_font_path is not None else settings.og_font_bold_path
        self.brand_icon_path = brand_icon_path if brand_icon_path is not None else settings.og_brand_icon_path
        self.fetch_timeout = fetch_timeout if fetch_timeout is not None else settings.og_fetch_timeout

    # ── Public API ────────────────────────────────────────────────────────

    async def render_default(self) -> bytes:
        return await asyncio.to_thread(
            self._compose_branded, None, settings.site_name, settings.site_tagline
        )

    async def render_episode(self, episode: EpisodeOut, base_url: str) -> bytes:
        cover = await self.fetch_cover(episode.cover_image, base_url)
        description = truncate(episode.full_description or episode.description or "")
        headline_size = 48 if len(episode.title) > LONG_TITLE else 64
        tag = episode.category.upper() if episode.category else None
        return await asyncio.to_thread(
            self._compose_feature, cover, tag, episode.title, description or None, headline_size
        )

    async def render_category(
        self,
        label: str,
        description: str,
        episode: Optional[EpisodeOut],
        base_url: str,
    ) -> bytes:
        """
        Category image from its newest episode's cover; without a usable cover,
        the branded layout with "{Label} Stories" as the headline.
        """
        headline = f"{label} Stories"
        cover = None
        if episode is not None and episode.cover_image:
            cover = await self.fetch_cover(episode.cover_image, base_url)

        if cover is None:
            return await asyncio.to_thread(
                self._compose_branded, label.upper(), headline, settings.site_tagline
            )
        return await asyncio.to_thread(
            self._compose_feature, cover, label.upper(), headline, description, 64
        )

    async def fetch_cover(self, cover_url: Optional[str], base_url: str) -> Optional[bytes]:
        """Downloads a cover image; None when absent or the download fails."""
        if not cover_url:
            return None
        url = absolute_url(cover_url, base_url)
        try:
            async with httpx.AsyncClient(timeout=self.fetch_timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            logger.warning("Could not fetch cover image %s: %s", url, str(e))
            return None

    # ── Composition (runs in a worker thread) ─────────────────────────────

    def _compose_branded(self, tag: Optional[str], headline: str, subline: str) -> bytes:
        """Centered layout on the default background."""
        canvas = Image.new("RGBA", SIZE, BACKGROUND_DEFAULT)
        layer = Image.new("RGBA", SIZE, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)

        headline_font = self._font(72, bold=True)
        subline_font = self._font(28)
        tag_font = self._font(18)

        icon = self._brand_icon()
        blocks_height = 0
        if icon is not None:
            blocks_height += icon.height + 40
        if tag:
            blocks_height += self._text_height(draw, tag, tag_font) + 24 + 32
        headline_lines = self._wrap(draw, headline, headline_font, WIDTH - 2 * PADDING, max_lines=2)
        headline_height = self._lines_height(draw, headline_lines, headline_font)
        blocks_height += headline_height + 16 + self._text_height(draw, subline, subline_font)

        y = (HEIGHT - blocks_height) // 2

        if icon is not None:
            canvas.alpha_composite(icon, ((WIDTH - icon.width) // 2, y))
            y += icon.height + 40

        if tag:
            _, tag_h = self._draw_tag(draw, tag, tag_font, None, y, padding=(24, 12))
            y += tag_h + 32

        for line in headline_lines:
            w, h = self._text_size(draw, line, headline_font)
            self._draw_text(draw, ((WIDTH - w) // 2, y), line, headline_font, TEXT_PRIMARY)
            y += int(h * 1.15)
        y += 16

        w, _ = self._text_size(draw, subline, subline_font)
        self._draw_text(draw, ((WIDTH - w) // 2, y), subline, subline_font, TEXT_SECONDARY)

        return self._to_png(Image.alpha_composite(canvas, layer))

    def _compose_feature(
        self,
        cover: Optional[bytes],
        tag: Optional[str],
        headline: str,
        subline: Optional[str],
        headline_size: int,
    ) -> bytes:
        """Left-aligned layout over a cover (or the default background)."""
        canvas = self._background(cover)
        canvas = Image.alpha_composite(canvas, self._gradient())

        layer = Image.new("RGBA", SIZE, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        text_width = WIDTH - 2 * PADDING

        tag_font = self._font(18)
        headline_font = self._font(headline_size, bold=True)
        subline_font = self._font(24)
        brand_font = self._font(28, bold=True)

        headline_lines = self._wrap(draw, headline, headline_font, min(text_width, 1000), max_lines=3)
        subline_lines = (
            self._wrap(draw, subline, subline_font, min(text_width, 900), max_lines=3) if subline else []
        )

        total = self._lines_height(draw, headline_lines, headline_font)
        if tag:
            total += self._text_height(draw, tag, tag_font) + 24 + 24
        if subline_lines:
            total += 24 + self._lines_height(draw, subline_lines, subline_font)

        y = max(PADDING, (HEIGHT - total) // 2 - 20)

        if tag:
            _, tag_h = self._draw_tag(draw, tag, tag_font, PADDING, y, padding=(16, 8))
            y += tag_h + 24

        for line in headline_lines:
            _, h = self._text_size(draw, line, headline_font)
            self._draw_text(draw, (PADDING, y), line, headline_font, TEXT_PRIMARY, shadow=True)
            y += int(h * 1.15)

        if subline_lines:
            y += 24
            for line in subline_lines:
                _, h = self._text_size(draw, line, subline_font)
                self._draw_text(draw, (PADDING, y), line, subline_font, TEXT_SECONDARY, shadow=True)
                y += int(h * 1.4)

        brand = settings.site_name
        _, brand_h = self._text_size(draw, brand, brand_font)
        self._draw_text(draw, (PADDING, HEIGHT - 48 - brand_h), brand, brand_font, TEXT_PRIMARY)

        return self._to_png(Image.alpha_composite(canvas, layer))

    # ── Helpers ───────────────────────────────────────────────────────────

    def _background(self, cover: Optional[bytes]) -> Image.Image:
        canvas = Image.new("RGBA", SIZE, BACKGROUND_COVER if cover else BACKGROUND_DEFAULT)
        if not cover:
            return canvas
        try:
            with Image.open(BytesIO(cover)) as source:
                fitted = ImageOps.fit(source.convert("RGBA"), SIZE, method=Image.Resampling.LANCZOS)
            canvas.alpha_composite(fitted)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.warning("Could not decode cover image: %s", str(e))
            return Image.new("RGBA", SIZE, BACKGROUND_DEFAULT)
        return canvas

    @staticmethod
    def _gradient() -> Image.Image:
        """Black overlay, alpha ~43% at the top rising to ~90% at the bottom."""
        ramp = Image.linear_gradient("L").resize(SIZE)
        alpha = ramp.point(lambda v: 110 + (v * 120) // 255)
        overlay = Image.new("RGBA", SIZE, (0, 0, 0, 0))
        overlay.putalpha(alpha)
        return overlay

    def _brand_icon(self) -> Optional[Image.Image]:
        if not self.brand_icon_path:
            return None
        try:
            with Image.open(self.brand_icon_path) as source:
                icon = source.convert("RGBA")
            icon.thumbnail((280, 280))
            return icon
        except OSError as e:
            logger.warning("Could not load brand icon %s: %s", self.brand_icon_path, str(e))
            return None

    def _font(self, size: int, bold: bool = False) -> FontType:
        path = self.bold_font_path if bold and self.bold_font_path else self.font_path
        if path:
            try:
                return ImageFont.truetype(path, size)
            except OSError as e:
                logger.warning("Could not load font %s: %s", path, str(e))
        return ImageFont.load_default(size=size)

    @staticmethod
    def _text_size(draw: ImageDraw.ImageDraw, text: str, font: FontType) -> Tuple[int, int]:
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        return int(right - left), int(bottom - top)

    def _text_height(self, draw: ImageDraw.ImageDraw, text: str, font: FontType) -> int:
        return self._text_size(draw, text, font)[1]

    def _lines_height(self, draw: ImageDraw.ImageDraw, lines: List[str], font: FontType) -> int:
        return sum(int(self._text_size(draw, line, font)[1] * 1.15) for line in lines)

    @staticmethod
    def _wrap(
        draw: ImageDraw.ImageDraw,
        text: str,
        font: FontType,
        max_width: int,
        max_lines: int,
    ) -> List[str]:
        """Greedy word wrap; the last allowed line gets '...' when text remains."""
        words = text.split()
        lines: List[str] = []
        current = ""
        for index, word in enumerate(words):
            candidate = f"{current} {word}".strip()
            if draw.textlength(candidate, font=font) <= max_width or not current:
                current = candidate
                continue
            lines.append(current)
            current = word
            if len(lines) == max_lines:
                current = ""
                remaining = words[index:]
                if remaining:
                    last = lines[-1]
                    while last and draw.textlength(last + "...", font=font) > max_width:
                        last = last[:-1]
                    lines[-1] = last.rstrip() + "..."
                break
        if current:
            lines.append(current)
        return lines[:max_lines]

    def _draw_tag(
        self,
        draw: ImageDraw.ImageDraw,
        text: str,
        font: FontType,
        x: Optional[int],
        y: int,
        padding: Tuple[int, int],
    ) -> Tuple[int, int]:
        """Rounded translucent pill; x=None centers it horizontally."""
        text_w, text_h = self._text_size(draw, text, font)
        pad_x, pad_y = padding
        box_w, box_h = text_w + 2 * pad_x, text_h + 2 * pad_y
        left = (WIDTH - box_w) // 2 if x is None else x
        draw.rounded_rectangle((left, y, left + box_w, y + box_h), radius=4, fill=TAG_FILL)
        self._draw_text(draw, (left + pad_x, y + pad_y), text, font, TEXT_PRIMARY)
        return box_w, box_h

    @staticmethod
    def _draw_text(
        draw: ImageDraw.ImageDraw,
        position: Tuple[int, int],
        text: str,
        font: FontType,
        fill: Tuple[int, int, int, int],
        shadow: bool = False,
    ) -> None:
        # textbbox offsets the glyphs; shift so `position` is the visual top-left
        left, top, _, _ = draw.textbbox((0, 0), text, font=font)
        x, y = position[0] - left, position[1] - top
        if shadow:
            draw.text((x, y + 2), text, font=font, fill=(0, 0, 0, 170))
        draw.text((x, y), text, font=font, fill=fill)

    @staticmethod
    def _to_png(image: Image.Image) -> bytes:
        buffer = BytesIO()
        image.convert("RGB").save(buffer, format="PNG", optimize=True)
        return buffer.getvalue()


# ── Singleton Instance ────────────────────────────────────────────────────
og_image_service = OgImageService()
