"""
Excepciones de la aplicación.
"""
