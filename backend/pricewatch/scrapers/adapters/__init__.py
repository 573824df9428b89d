"""Shop-specific adapter implementations.

Each adapter module implements a class that inherits from
BaseHTTPAdapter (JSON APIs and static HTML) or BaseBrowserAdapter
(pages that need a real browser).
"""

# HTTP adapters
from .sirena import SirenaAdapter
from .nacional import NacionalAdapter
from .plaza_lama import PlazaLamaAdapter
from .pricesmart import PricesmartAdapter
from .bravo import BravoAdapter

# Browser adapters
from .jumbo import JumboAdapter

__all__ = [
    # HTTP adapters
    "SirenaAdapter",
    "NacionalAdapter",
    "PlazaLamaAdapter",
    "PricesmartAdapter",
    "BravoAdapter",
    # Browser adapters
    "JumboAdapter",
]
