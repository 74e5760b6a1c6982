"""
The `api` package defines the backend's HTTP interface.

Contents
--------
- main
    App factory (`create_app`) wiring the store, the model client and routers.
- sessions
    Session CRUD, messaging and the per-session report.
- users
    Registration, credential check and the current-user lookup.
- security
    API key check and the forwarded user identity.
- errors
    Error taxonomy and its JSON exception handler.
"""
