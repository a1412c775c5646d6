"""
Payment details registry.

A small FastAPI service that stores a UPI identifier and a QR-code image per
client base URL, with writes gated by a hashed shared secret.
"""
