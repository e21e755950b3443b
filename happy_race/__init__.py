"""
happy-race: dual-stack ("happy eyeballs") race scenario generator.

Enumerates timing assignments of the DNS-then-TCP race a dual-stack client
performs and predicts the winning address and minimum response time of each.
"""

__version__ = "0.1.0"
