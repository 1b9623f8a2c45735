"""Data access managers for the Maistro server.

Each manager wraps one JSON document store and encapsulates CRUD
operations and validation rules.  Managers raise domain exceptions
(``LookupError``, ``ValueError``), never HTTP exceptions -- that
translation is the router's responsibility.
"""
