"""
scratchcnn: a from-scratch convolutional network training engine.

The core (tensor, layers, model) lives under `infrastructure`, with the
structural contracts it satisfies defined under `domain`.
"""
