"""
High-level use cases for the PrekClip API.

Each service orchestrates the State Store to implement business rules
(register, toggle a like, follow someone...). Routers call these services
instead of manipulating the document or sessions directly.
"""
