"""
Descarga temporal y biblioteca local de assets.
"""
