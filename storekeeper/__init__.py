from .keeper import Storekeeper

__version__ = "0.3.0"
__author__ = "Storekeeper Contributors"
__url__ = ""

__all__ = ["Storekeeper", "__version__"]
