"""Reporting over the world log: status snapshots and charts."""

from .status import build_status, write_status

__all__ = ["build_status", "write_status"]
