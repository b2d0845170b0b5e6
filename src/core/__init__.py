"""Core domain package for groupguard.

Core contains link classification, group policy handling, enforcement and the
session lifecycle state machine without any Telegram or storage-specific
code, keeping the moderation logic portable.
"""
