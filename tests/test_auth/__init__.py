"""
Auth Module Tests
----------------
Token codec, claims, identity verification, rotation engine and the
FastAPI dependencies.
"""
