# Services package init
"""
FeedHub Backend — Services Layer
=================================

Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - PasswordHasher: bcrypt hashing and verification (passlib)
    - ObjectStore / LocalObjectStore: media blobs on the local file system
    - UserService: signup, login, user lookup
    - TokenService: session token issue / verify / revoke / list / sweep
    - PostService: feed, posts, likes, comments

Every service is constructed once in create_app() and reached from routes
through the getters in feedhub.dependencies. Methods that touch the database
take the caller's AsyncSession.
"""
