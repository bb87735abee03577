"""
Contest entry service - admission and deferred notifications.

Platform-agnostic; the FastAPI app in main.py and web_api/ is one caller.
"""
