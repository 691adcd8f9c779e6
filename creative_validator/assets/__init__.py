"""
creative_validator/assets package marker.
"""
