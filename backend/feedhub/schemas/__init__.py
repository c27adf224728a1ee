# Schemas package init
"""
FeedHub Backend — API Schemas
==============================

Pydantic models for request and response bodies. All JSON keys are
camelCase on the wire (`userType`, `likedBy`, `createdAt`) and snake_case
in Python; response models read straight from ORM objects.
"""
