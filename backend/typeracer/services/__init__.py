"""Domain services: race mechanics, leaderboard storage and events.

Everything here is imported by HTTP routes and socket handlers, keeping
transport concerns separated from the race and scoring rules.
"""
