"""Race mechanics: typing engine, countdown clock, ghost and orchestration.

The engine, clock, ghost and orchestrator take time from an injected
scheduler and report scores through an injected scoreboard. ``session``
binds them to the Flask app and one socket connection.
"""
