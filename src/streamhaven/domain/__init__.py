"""
Domain layer for StreamHaven.

``entities`` holds the persisted content store; ``content`` holds the
ephemeral value types computed from it.
"""
