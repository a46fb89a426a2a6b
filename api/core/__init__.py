"""
Shared, cross-cutting code for the API.

`core/` should contain small building blocks that multiple features use
(DB wiring, error classification, response envelope, logging). Keep
feature-specific SQL and business logic in the corresponding feature
package (e.g. `statuses/`).
"""
