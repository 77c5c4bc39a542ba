"""Jinja2 templates for the index page, with the timer display filters."""

from __future__ import annotations

from datetime import datetime, tzinfo
from functools import partial
from typing import Any
from zoneinfo import ZoneInfo

from fastapi.templating import Jinja2Templates

from ..services.timecalc import parse_iso
from .config import AppSettings


def _fmt_dt(value: Any, fmt: str = "%Y-%m-%d %H:%M:%S", *, zone: tzinfo) -> str:
    """Show a timer timestamp in the display zone."""

    if isinstance(value, str):
        try:
            value = parse_iso(value)
        except ValueError:
            return ""
    if not isinstance(value, datetime):
        return ""
    return value.astimezone(zone).strftime(fmt)


def _fmt_duration(value: Any) -> str:
    """Milliseconds as ``H:MM:SS``, the same layout the page script renders."""

    try:
        total = int(value) // 1000
    except (TypeError, ValueError):
        return ""
    hours, rest = divmod(max(total, 0), 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def get_templates(config: AppSettings) -> Jinja2Templates:
    templates = Jinja2Templates(directory=str(config.templates_dir))
    templates.env.filters["fmt_dt"] = partial(_fmt_dt, zone=ZoneInfo(config.TZ))
    templates.env.filters["fmt_duration"] = _fmt_duration
    return templates
