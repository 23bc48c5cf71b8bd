"""AI Tools Catalog backend: image generation metadata extraction."""
