"""
SocialHub Backend: API Routes Package
=======================================

What:  HTTP route handlers. Each module owns one resource prefix.

Route Inventory:
    - auth.py:      /auth      (register, login, me, password management)
    - posts.py:     /posts     (CRUD, likes, comments, feed, explore)
    - profiles.py:  /profiles  (profiles, follow graph, profile edits)
    - search.py:    /search    (users, posts, trending)
    - health.py:    /health

Routes stay thin: parse the request, call one service, wrap the result in
the response envelope. Business rules live in socialhub.services.
"""
