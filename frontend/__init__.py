"""
Job board UI - Flask + HTMX frontend for TheJobofficer.

Provides the public job listing and detail pages, and the admin area for
managing postings with AI-assisted drafting.
"""
