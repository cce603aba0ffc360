"""Propagación de cambios de coordenadas a la geometría dependiente."""
