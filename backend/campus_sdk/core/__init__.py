# campus_sdk/core/__init__.py
"""
Core SDK modules.
Contains the record store and its infrastructure:
- errors: Error taxonomy shared by every layer
- schema: Collection schemas and the SchemaRegistry
- remote: RemoteObjectBackend over the GitHub contents API
- store: RecordStore (CRUD and in-memory queries)
- sessions: Process-local SessionCache
- security: Password hashing, session tokens and one-time passcodes
- sdk: Builds the object graph from settings
- bootstrap: Default admin and demo accounts on first startup
"""
