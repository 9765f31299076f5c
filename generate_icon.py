"""
Generate the Lumi app icon (the face from the tray, at every .ico size).
Run standalone to preview, or import generate_icon() from a packaging script.
"""
import os

from lumi_render import draw_app_icon
from lumi_timer import Mode

ICO_SIZES = [16, 32, 48, 64, 128, 256]


def generate_icon(out_dir: str = ".") -> list[str]:
    """Write icon.ico and icon.png into out_dir; returns the paths written."""
    images = [draw_app_icon(s, Mode.FOCUS, running=True) for s in ICO_SIZES]
    ico = os.path.join(out_dir, "icon.ico")
    png = os.path.join(out_dir, "icon.png")
    # ICO: largest image first, smaller ones appended
    images[-1].save(ico, format="ICO", sizes=[(s, s) for s in ICO_SIZES],
                    append_images=images[:-1])
    images[-1].save(png, format="PNG")
    return [ico, png]


if __name__ == "__main__":
    generate_icon()
    preview = draw_app_icon(512, Mode.FOCUS, running=True)
    preview.save("icon_preview.png", format="PNG")
    print("Generated icon.ico, icon.png, and icon_preview.png (512px)")
