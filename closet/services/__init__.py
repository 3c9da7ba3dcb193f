"""Form handling and wardrobe statistics."""
