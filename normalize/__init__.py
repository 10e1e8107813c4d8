"""
Normalize package: leaderboard data models and payload decoding.
"""
