"""Poemgraph: knowledge-graph browser API for classical poetry."""

__version__ = "0.1.0"
