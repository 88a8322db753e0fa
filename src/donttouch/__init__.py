"""
donttouch - Protect files from being modified by AI coding agents and accidental changes.

Components:
- Protection: Lock/unlock protected files by toggling write permission
- Git Integration: pre-commit and pre-push hooks that block protected changes
- Agent Notes: Marked instructions injected into agent config files
"""

__version__ = "0.3.0"
