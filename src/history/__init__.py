"""Historial de cambios reversibles de Ligmap."""
