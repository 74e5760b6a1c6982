"""
Turns one user message into a persisted user/model exchange.
"""
