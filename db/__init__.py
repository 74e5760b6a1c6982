"""
The `db` package is the persistence layer.

Contents
--------
- models
    SQLAlchemy entities: User, ChatSession, Message.
- session
    Engine / session factory construction and schema creation.
- store
    EntityStore, the only object the rest of the code talks to.
"""
