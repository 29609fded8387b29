"""
Discord-side wiring shared by the cogs: services, permissions and interaction helpers.
"""
