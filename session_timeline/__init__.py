"""
Session Timeline: timeline grouping, all-in EV reconciliation and profit
series for poker sessions.
"""

from session_timeline.core.ev import AllInSummary, summarize_all_ins
from session_timeline.core.grouping import TimelineItem, group_timeline_items
from session_timeline.core.profit_series import ProfitSample, build_profit_series

__all__ = [
    "AllInSummary",
    "ProfitSample",
    "TimelineItem",
    "build_profit_series",
    "group_timeline_items",
    "summarize_all_ins",
]
