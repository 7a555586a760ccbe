"""Generate the tray icon: a calendar sheet with today's day (64×64 PIL Image)."""

from datetime import date

from PIL import Image, ImageDraw, ImageFont

ACCENT = "#0078D4"


def _fit_font(draw: ImageDraw.ImageDraw, text: str, max_w: int, max_h: int):
    """Largest truetype font for *text* that fits the box (default font fallback)."""
    font_size = 60
    while font_size > 8:
        try:
            font = ImageFont.truetype("segoeuib.ttf", font_size)
        except OSError:
            return ImageFont.load_default()
        bbox = draw.textbbox((0, 0), text, font=font)
        if bbox[2] - bbox[0] <= max_w and bbox[3] - bbox[1] <= max_h:
            return font
        font_size -= 1
    return ImageFont.load_default()


def create_icon_image(today: date | None = None) -> Image.Image:
    """Return a 64×64 RGBA image: accent header bar over the day of month."""
    size = 64
    header_h = 16
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rectangle((0, 0, size - 1, size - 1), fill="white", outline=ACCENT, width=2)
    draw.rectangle((0, 0, size - 1, header_h), fill=ACCENT)

    day = str((today or date.today()).day)
    font = _fit_font(draw, day, size - 8, size - header_h - 8)

    # Centre the visible pixels below the header
    bbox = draw.textbbox((0, 0), day, font=font)
    x = (size - (bbox[2] - bbox[0])) / 2 - bbox[0]
    y = header_h + (size - header_h - (bbox[3] - bbox[1])) / 2 - bbox[1]
    draw.text((x, y), day, fill="black", font=font)
    return img
