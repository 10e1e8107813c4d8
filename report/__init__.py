"""
Report package: render and persist the leaderboard.
"""
