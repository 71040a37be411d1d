"""
Services module for business logic separation.

This module contains the view counting services (dedup cache, view
tracking, daily page views, statistics, dashboard), keeping business
logic separate from API endpoints and database models.
"""
