"""Shared helpers for the relocation engine."""

from __future__ import annotations

from .date_utils import format_date, parse_date

__all__ = ["format_date", "parse_date"]
