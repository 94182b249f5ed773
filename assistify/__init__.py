"""Assistify: chat backend with email/OTP login and LLM-generated answers."""

__version__ = "1.0.0"
