"""
Projects module.

Table numbers ("locations") place each project on the judging floor. Admins
can renumber everything in order, or split the floor into judging groups.
"""
