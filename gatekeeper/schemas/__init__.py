"""HTTP request/response schemas (Pydantic).

Kept separate from domain entities; these are HTTP-layer concerns.
"""
