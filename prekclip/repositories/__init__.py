"""
Persistence adapters.

``json_storage`` keeps the whole document in one file, ``sql_repository``
maps it onto SQL tables; ``store.StateStore`` wraps either one.
Services depend on the store rather than touching storage directly.
"""
