"""
Cliente del API de GatherContent (v0.5).

Solo expone lo que consume el pull: lectura de items, de sus archivos y
cambio de status.
"""
