from __future__ import annotations

from .css import (
    build_common_element_styles,
    build_pdf_body_extras,
    build_pdf_page_rules,
    build_pdf_title_block_hide,
)
from .models import TargetFormat
from .typography import CSSGenerationOptions, UnknownPresetError, generate_preset_css, get_preset


def build_stylesheet(
    preset_id: str,
    output_format: TargetFormat,
    *,
    paper_size: str = "a4",
    cover_css: str | None = None,
    custom_css: str | None = None,
) -> str:
    """Assemble the complete stylesheet handed to the conversion engine.

    EPUB output never contains ``@page`` rules; PDF output gets the page box,
    page counter and cover page rules on top of the preset.
    """

    preset = get_preset(preset_id)
    if preset is None:
        raise UnknownPresetError(preset_id)

    parts = [
        generate_preset_css(
            preset_id,
            CSSGenerationOptions(output_format=output_format, include_page_breaks=False),
        ).rstrip(),
        "\n".join(build_common_element_styles(output_format)),
    ]
    if output_format == "pdf":
        extras = "\n".join(f"  {rule}" for rule in build_pdf_body_extras())
        parts += [
            "\n".join(build_pdf_page_rules(preset.settings.page_margins, paper_size)),
            f"body {{\n{extras}\n}}",
            build_pdf_title_block_hide(),
        ]
        if cover_css:
            parts.append(f"/* Cover */\n{cover_css.strip()}")
    if custom_css and custom_css.strip():
        parts.append(f"/* Custom CSS */\n{custom_css.strip()}")
    return "\n\n".join(parts) + "\n"


__all__ = ["build_stylesheet"]
