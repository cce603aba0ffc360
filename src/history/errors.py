"""Excepciones específicas del historial de cambios."""


class HistoryError(Exception):
    """Se lanza cuando se viola una precondición del historial."""


class NothingToUndoError(HistoryError):
    """Se lanza al deshacer sin pasos aplicados que revertir."""


class NothingToRedoError(HistoryError):
    """Se lanza al rehacer sin pasos deshechos pendientes."""


class UnknownChangeKindError(HistoryError):
    """Se lanza si el intérprete recibe un tipo de cambio no registrado."""
