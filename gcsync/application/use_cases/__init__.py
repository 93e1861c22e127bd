"""
Casos de uso de la aplicación.
"""
