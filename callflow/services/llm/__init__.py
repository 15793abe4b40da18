"""LLM providers"""
