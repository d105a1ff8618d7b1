"""Document verification for the recruitment platform.

Extracts business and onboarding documents through Document AI and
Gemini, verifies them, and cross-references identity details across an
agency's or candidate's document set.
"""
