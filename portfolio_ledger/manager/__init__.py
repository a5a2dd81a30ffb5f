"""
Portfolio Manager

Command facade and periodic revaluation.
"""
