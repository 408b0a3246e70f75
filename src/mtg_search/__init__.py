"""
mtg-search

Builds turbopuffer-backed full-text indexes of MTGJSON card sets and
serves ranked queries against them.
"""

__version__ = "0.1.0"
