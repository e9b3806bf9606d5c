"""
VideoTube Backend — Services Layer (Entity Layer)
==================================================

Business rules between routes (HTTP) and the database:
    - UserService:  uniqueness, password hashing save path, sessions, watch history
    - VideoService: owner checks, monotonic view counts, listing

Services are stateless singletons; the request's AsyncSession is passed to
every call.
"""
