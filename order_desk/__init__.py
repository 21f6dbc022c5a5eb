"""Servicio de registro y administración de pedidos de la tienda."""

__version__ = "1.0.0"
