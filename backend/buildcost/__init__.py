"""
BuildCost: PC component catalog and build configuration pricing.
"""
