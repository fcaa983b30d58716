"""
Package implementing separate-and-conquer (covering) rule learning algorithms.

It induces ordered rule lists for classification data (with optional RIPPER-like
MDL based optimization of learned theories) and multi-label rule sets with
multi-condition heads, handling both nominal and numerical attributes.
"""
