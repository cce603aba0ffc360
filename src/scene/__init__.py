"""Escena de Ligmap: estructuras, elementos de escena y orquestación."""
