"""
Journal API — Services Layer
=============================

What:  Business rules between the routes (HTTP) and the database.
How:   Services take an AsyncSession (and a BlobStore where bytes are
       involved) per call and hold no per-request state, so one module-level
       instance of each is shared by every request.

Service Inventory:
    - AuthProvider (abstract) / DatabaseAuthProvider: bearer sessions
    - SessionResolver: bearer and admin-cookie resolution
    - BlobStore (abstract) / LocalBlobStore: attachment bytes
    - JournalService: user-scoped entry CRUD, listing and search
    - AttachmentService: upload, download and delete of entry files
    - UserService: profiles, user administration, bootstrap admin
    - CascadeService: ordered deletion of a user or entry and its dependents
"""
