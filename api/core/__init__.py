"""
Shared, cross-cutting code for the API.

`core/` holds small building blocks that several features use (DB handle,
settings, errors, schema probing, query fallback, value coercion, response
projection). Keep feature-specific SQL and business logic in the corresponding
feature package (e.g. `admin/`, `content/`).
"""
