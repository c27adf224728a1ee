# Routes package init
"""
FeedHub Backend — API Routes Package
=====================================

Route Inventory:
    - auth.py:    /auth/signup, /auth/login, /auth/logout, /auth/logout-all,
                  /auth/tokens, /auth/me
    - posts.py:   /posts, /posts/{id}, /posts/{id}/like, /posts/{id}/comment,
                  /posts/{postId}/comment/{commentId}
    - media.py:   /media/{category}/{name}
    - health.py:  /health

Routes stay thin: read the request, call a service, shape the response.
Business rules and ownership checks live in the services layer.
"""
