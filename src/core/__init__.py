"""Core domain package for the codefall golem.

Core contains command routing, notification handling and announcement logic
without any Twitch or PostgreSQL-specific code, keeping the business logic
portable.
"""
