"""Speech synthesis providers"""
