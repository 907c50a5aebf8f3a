from ._trainer import (
    one_hot,
    image_to_tensor,
    train_one_epoch,
    evaluate,
    show_random_predictions,
    fit,
)

__all__ = [
    "one_hot",
    "image_to_tensor",
    "train_one_epoch",
    "evaluate",
    "show_random_predictions",
    "fit",
]
