"""Vector geometry model, bounding boxes, clipping and simplification."""
