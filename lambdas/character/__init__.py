"""Character persistence."""
