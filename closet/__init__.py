"""Personal wardrobe tracker: pieces, outfits, wear logs and photo auto-fill."""

__version__ = "0.1.0"
