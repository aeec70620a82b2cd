"""Villa - social feed and cast catalog API for a reality-TV fan app.

This package provides functionality for:
- Browsing the read-only Islander (cast member) catalog
- User signup, login and profile management
- Posting to the feed, replying and reacting to posts
- Following and unfollowing other users
"""

__version__ = "1.0.0"
