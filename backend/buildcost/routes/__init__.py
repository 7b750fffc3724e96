"""
HTTP routers.
"""
from buildcost.routes import catalog, configurations

__all__ = [
    'catalog',
    'configurations',
]
