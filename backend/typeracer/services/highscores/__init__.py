"""Highscore storage and ranking for an event's leaderboard."""
