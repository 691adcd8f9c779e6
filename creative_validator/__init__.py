"""
creative_validator package marker.
"""
