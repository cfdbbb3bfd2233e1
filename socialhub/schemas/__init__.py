"""
SocialHub Backend: Schemas Package
====================================

Pydantic models for request validation and response serialization.

    - common.py:  response envelopes, pagination, errors, health
    - user.py:    auth requests, account/profile views, follow status
    - post.py:    post/comment requests, post views, trending topics
"""
