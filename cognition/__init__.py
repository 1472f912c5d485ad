"""Conversational intent pipeline: context, routing, reasoning and learning."""

__version__ = "0.1.0"
