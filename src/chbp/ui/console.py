"""
Shared Rich console instances with the chbp theme.
"""

from rich.console import Console
from rich.theme import Theme

CHBP_THEME = Theme({
    "brand": "#FAFF69",           # ClickHouse yellow - headers, branding
    "success": "green",
    "warning": "yellow",
    "error": "red bold",
    "info": "white",
    "filepath": "cyan",
    "rule_title": "#FAFF69",
    "muted": "dim",
    # Rich progress bar style overrides
    "progress.spinner": "#FAFF69",
    "progress.percentage": "green",
    "bar.complete": "#FAFF69",
    "bar.finished": "green",
    "progress.elapsed": "dim",
})

# Brand border style for panels and tables
BRAND_BORDER = "#FAFF69"

# Shared console instances; failures go to stderr
console = Console(theme=CHBP_THEME)
err_console = Console(theme=CHBP_THEME, stderr=True)
