"""
TheJobofficer core package.

Domain model, filter/pagination engine, store adapter, auth session and
AI scout services used by the Flask frontend.
"""
