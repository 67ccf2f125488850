"""
Stateful services: in-memory stores, customer intake and the HTTP API.
"""
