from ._cnn_model import CNNModel
from ._history import History

__all__ = [
    CNNModel.__name__,
    History.__name__,
]
