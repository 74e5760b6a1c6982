"""
Pure engagement analytics over a session's message history.
"""
