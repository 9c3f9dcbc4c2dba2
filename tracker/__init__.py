"""Galileosky-style GPS tracker client: packet codec, delivery pipeline and GPS sources."""
