"""Prompt templates for the external code-generation service."""
