"""Store service layer.

Views call these functions instead of manipulating models directly.
"""
