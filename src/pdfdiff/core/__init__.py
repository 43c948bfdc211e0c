"""Rendering, cropping, page pairing and pixel diffing."""
