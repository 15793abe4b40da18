"""Telephony providers"""
