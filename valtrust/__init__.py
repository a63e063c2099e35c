"""
valtrust: public trust and performance signals for a Solana validator.
"""

__version__ = "0.1.0"
