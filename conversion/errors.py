class ConversionError(Exception):
    """
    Raised when a structural problem makes the rest of a conversion meaningless.
    """
