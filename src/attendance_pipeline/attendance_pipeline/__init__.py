"""Attendance pipeline package.

Organized by feature modules (biotime, punches, gaps, polling, attendance, ...)
with repository/service layers and a thin Flask controller for the read API.
"""
