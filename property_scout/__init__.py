"""
Property Scout - natural-language property search assistant.

Turns a free-text query into a ranked set of listings, widening the price
window when strict criteria yield nothing, and grounds conversational answers
in a small retrieval-augmented knowledge store.
"""

__version__ = "0.1.0"
