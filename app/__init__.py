"""Pellicula favourites API application package."""
