"""
graphgen: typed modusGraph client generator for tagged Go structs.
"""

__version__ = "0.1.0"
