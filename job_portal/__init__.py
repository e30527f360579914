"""
Job Portal - Flask job board.

Job seekers register, browse and search postings, and apply; employers
post jobs. Users and sessions live in MongoDB.
"""

__version__ = "1.0.0"
