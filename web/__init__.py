"""
Web application package for the UCI driver.

Provides a FastAPI-based REST API in front of one engine process, so that a
browser or another service can ask for moves and evaluations over HTTP.
"""
