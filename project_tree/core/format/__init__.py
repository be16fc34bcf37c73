"""Tree formatting: raw phase/deliverable records to the normalized node tree.

Phase status is a live rollup of activity statuses; deliverable status is the
stored sign-off decision. Progress is rolled up for both.
"""
