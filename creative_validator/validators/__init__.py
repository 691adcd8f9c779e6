"""
creative_validator/validators

Policy checks, pattern matchers, dimension resolution and lint delegates.
"""
