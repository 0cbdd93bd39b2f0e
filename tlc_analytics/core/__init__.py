"""
Core building blocks: errors, models and schema resolution.
"""
