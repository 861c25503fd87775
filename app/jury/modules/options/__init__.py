"""
Options module.

A single row of event-wide settings: the table-number counters, the judging
group layout and the manual group-switch counter.
"""
