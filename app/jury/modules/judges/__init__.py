"""
Judges module.

Each judge reviews one group of projects at a time. Admins rotate every judge
to the next group together; each rotation is counted as a manual switch.
"""
