"""
Product Page Optimizer

Turns a raw e-commerce product page into a confidence-scored product record
and runs a fixed set of content-generation tasks against it, falling back to
deterministic heuristics whenever the generation provider is unavailable.
"""

__version__ = "1.0.0"
__author__ = "Product Optimizer Team"
