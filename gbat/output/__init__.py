"""
Output — JSON rendering of the summary store
"""

from .render import SummaryRenderer, dump_json

__all__ = ["SummaryRenderer", "dump_json"]
