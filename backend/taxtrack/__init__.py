"""
TaxTrack backend package.
"""
