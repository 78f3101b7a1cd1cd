"""Cube-face coordinates, points and 64-bit cell ids."""
