"""
Data Providers

Price feed interface and persistence stores.
"""
