"""
Derived columns: scaling, squared terms, indicators, interactions, bins.
"""
