"""HTTP API for Poemgraph."""
