"""
VideoTube Backend — API Routes Package
=======================================

Route Inventory:
    - health.py:  GET /                       (database liveness)
    - users.py:   /api/v1/users...            (accounts, session cookie, watch history)
    - videos.py:  /api/v1/videos...           (video records, view counts)

Routes are thin and wrapped by `videotube.executor.async_handler`; business
rules live in the services.
"""
