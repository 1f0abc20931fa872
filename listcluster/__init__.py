"""
Top-level package for the list clustering toolkit.

This package scores ranked lists against each other with rank-biased
overlap (RBO) and turns a collection of lists into a weighted similarity
graph, fanning the pairwise work out over a bounded thread pool.  Loading
lists, exporting edges, a small CLI and an HTTP endpoint sit around that
core.  There are no side-effects on import.
"""
