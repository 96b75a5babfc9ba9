from init_wizard.render.markers import render_page, render_text

__all__ = ["render_page", "render_text"]
